"""
Data models for invoice editing.
Using Pydantic for validation and type safety.

Attributes are snake_case in Python; stored JSON uses the camelCase keys of
the storage format (invoiceNumber, unitPrice, reverseCharge, ...).
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, BeforeValidator
from pydantic.alias_generators import to_camel


ZERO = Decimal('0')

BACKUP_VERSION = '1.0'


# Accepted magnitudes of entered values (quantities, prices, rates)
MAX_MONEY_EXPONENT = 15
MIN_MONEY_EXPONENT = -28

# Products and sums of entered values stay inside these
MAX_DERIVED_EXPONENT = 100
MIN_DERIVED_EXPONENT = -100


def _to_decimal(value: Any, min_exponent: int, max_exponent: int) -> Decimal:
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not result.is_finite() or result.is_zero():
        return ZERO
    if not min_exponent <= result.adjusted() <= max_exponent:
        return ZERO
    return result


def to_money(value: Any) -> Decimal:
    """
    Coerce a user-supplied number to Decimal.

    Anything that is not a finite number (None, "abc", NaN, infinity)
    becomes zero, and so does any value of absurd magnitude (at or above
    1e16, or a non-zero value below 1e-28).
    """
    return _to_decimal(value, MIN_MONEY_EXPONENT, MAX_MONEY_EXPONENT)


def to_derived_money(value: Any) -> Decimal:
    """Like to_money, with the wider range of computed amounts and totals"""
    return _to_decimal(value, MIN_DERIVED_EXPONENT, MAX_DERIVED_EXPONENT)


def _money_to_json(value: Decimal):
    """
    JSON form of a money value: an int when integral, a float when the float
    reads back as the same Decimal, otherwise the exact decimal text.
    """
    if value == value.to_integral_value():
        return int(value)
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


def _date_to_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value)


Money = Annotated[
    Decimal,
    BeforeValidator(to_money),
    PlainSerializer(_money_to_json, when_used='json'),
]

DerivedMoney = Annotated[
    Decimal,
    BeforeValidator(to_derived_money),
    PlainSerializer(_money_to_json, when_used='json'),
]

# Display-only calendar date; malformed input is kept verbatim
DisplayDate = Annotated[str, BeforeValidator(_date_to_text)]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    """Base for all stored records"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_json_dict(self) -> dict:
        """Dump using the stored (camelCase) key names"""
        return self.model_dump(mode='json', by_alias=True)


class CompanyInfo(Record):
    """Issuing company"""
    name: str = ''
    tagline: str = ''
    address: str = ''
    city: str = ''
    postal_code: str = ''
    country: str = ''
    company_code: str = ''
    vat_number: str = ''
    email: str = ''
    phone: str = ''


class ClientInfo(Record):
    """Billed client"""
    name: str = ''
    address: str = ''
    building: Optional[str] = None
    floor: Optional[str] = None
    city: str = ''
    country: str = ''
    uic: str = ''
    vat_number: str = ''


class InvoiceDetails(Record):
    """Identity and dates of a single invoice instance"""
    invoice_number: str = ''
    invoice_date: DisplayDate = ''
    service_period_start: DisplayDate = ''
    service_period_end: DisplayDate = ''


class ServiceItem(Record):
    """Single line item in invoice"""
    id: str = Field(default_factory=new_id)
    description: str = ''
    additional_info: Optional[str] = None
    quantity: Money = ZERO
    unit_price: Money = ZERO
    # Derived: always quantity * unit_price after recalculation
    amount: DerivedMoney = ZERO


class PaymentInfo(Record):
    """Bank and terms metadata, not computed"""
    bank_name: str = ''
    iban: str = ''
    swift: str = ''
    currency: str = 'EUR'
    payment_terms_days: int = 10


class ReverseChargeInfo(Record):
    """Reverse-charge treatment; when applicable, output tax is zero"""
    applicable: bool = False
    article44_text: str = Field(default='', alias='article44Text')
    article13_text: str = Field(default='', alias='article13Text')
    customer_vat: str = Field(default='', alias='customerVAT')


CONTENT_FIELDS = frozenset({
    'company', 'client', 'services', 'payment', 'reverse_charge', 'vat_rate',
})


class InvoiceContent(Record):
    """
    The part of an invoice a template may carry.

    Carries no identity or date fields: a template is content, not a
    dated instance.
    """
    company: CompanyInfo = Field(default_factory=CompanyInfo)
    client: ClientInfo = Field(default_factory=ClientInfo)
    services: List[ServiceItem] = Field(default_factory=list)
    payment: PaymentInfo = Field(default_factory=PaymentInfo)
    reverse_charge: ReverseChargeInfo = Field(default_factory=ReverseChargeInfo)
    vat_rate: Money = ZERO

    def copy_content(self) -> 'InvoiceContent':
        """Deep copy with no shared mutable state"""
        return self.model_copy(deep=True)


class Invoice(Record):
    """Complete invoice representation"""
    id: str = Field(default_factory=new_id)
    template_name: Optional[str] = None

    company: CompanyInfo = Field(default_factory=CompanyInfo)
    client: ClientInfo = Field(default_factory=ClientInfo)
    details: InvoiceDetails = Field(default_factory=InvoiceDetails)
    services: List[ServiceItem] = Field(default_factory=list)
    payment: PaymentInfo = Field(default_factory=PaymentInfo)
    reverse_charge: ReverseChargeInfo = Field(default_factory=ReverseChargeInfo)

    subtotal: DerivedMoney = ZERO
    vat_rate: Money = ZERO
    vat_amount: DerivedMoney = ZERO
    total: DerivedMoney = ZERO

    footer_note: Optional[str] = None

    def content(self) -> InvoiceContent:
        """Template-able content of this invoice, deep copied"""
        data = self.model_dump(include=set(CONTENT_FIELDS))
        return InvoiceContent.model_validate(data)


class InvoiceTemplate(Record):
    """Named, reusable snapshot of invoice content"""
    id: str = Field(default_factory=new_id)
    name: str
    description: Optional[str] = None
    invoice: InvoiceContent = Field(default_factory=InvoiceContent)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class BackupDocument(Record):
    """
    User-facing backup file.

    Every key is optional; only keys present in an imported document are
    applied.
    """
    templates: Optional[List[InvoiceTemplate]] = None
    current_invoice: Optional[Invoice] = None
    last_invoice_number: Optional[int] = Field(default=None, ge=0)
    version: str = BACKUP_VERSION
