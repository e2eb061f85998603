"""Seed content for a brand-new invoice."""
from decimal import Decimal

from invoice_editor.core.models import (
    ClientInfo,
    CompanyInfo,
    InvoiceContent,
    PaymentInfo,
    ReverseChargeInfo,
    ServiceItem,
)

DEFAULT_PERIOD_LENGTH_DAYS = 30

DEFAULT_FOOTER_NOTE = 'Thank you for your business'


def default_invoice_content() -> InvoiceContent:
    """Fresh copy of the default issuer, client, service and tax treatment"""
    return InvoiceContent(
        company=CompanyInfo(
            name='MB Core vienas',
            tagline='Enterprise Transformation & Consulting',
            address='Gedimino pr. 27 - 2/1',
            city='Vilnius',
            postal_code='LT-01104',
            country='Lithuania',
            company_code='307316648',
            vat_number='LT100018884619',
            email='hello@coreone.io',
            phone='+370 673 70655',
        ),
        client=ClientInfo(
            name='SOPHARMA TRADING AD',
            address='5 Lachezar Stanchev Str., Sopharma Business Towers',
            building='Building A',
            floor='Floor 12',
            city='Izgrev district, Sofia',
            country='Bulgaria',
            uic='103267194',
            vat_number='BG131473733',
        ),
        services=[
            ServiceItem(
                id='1',
                description='Consulting Services – Monthly Fixed Fee',
                additional_info='Under Agreement dated October 3, 2025',
                quantity=Decimal('1'),
                unit_price=Decimal('5231.25'),
                amount=Decimal('5231.25'),
            ),
        ],
        payment=PaymentInfo(
            bank_name='Swedbank, AB',
            iban='LT72 7300 0101 9632 6954',
            swift='HABALT22',
            currency='EUR',
            payment_terms_days=10,
        ),
        reverse_charge=ReverseChargeInfo(
            applicable=True,
            article44_text='Article 44 of Council Directive 2006/112/EC',
            article13_text='Article 13 of the Lithuanian VAT Law',
            customer_vat='BG131473733',
        ),
        vat_rate=Decimal('0'),
    )
