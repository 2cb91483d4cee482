# vitrine/core/validators.py
"""
Validação e normalização dos dados do formulário de checkout.

Todas as regras rodam juntas: o resultado é um dicionário {campo: mensagem}
com TODOS os campos inválidos, nunca apenas o primeiro.
"""
import re
from typing import Dict, Tuple

from vitrine.core.entities import OrderDraft, ShippingInfo

DEFAULT_COUNTRY_PREFIX = '+880'

FULL_NAME_MAX_LENGTH = 100
ADDRESS_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 500

# Permissivo: palavras separadas por "." ou "-", TLD de 2 a 3 caracteres.
# Cada grupo repetido começa por um separador: uma palavra só casa de um jeito.
EMAIL_PATTERN = re.compile(r'\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*(?:\.\w{2,3})+', re.ASCII)
EMAIL_MAX_LENGTH = 254

PHONE_PATTERN = re.compile(r'[+]?[1-9]\d{9,15}', re.ASCII)

_NON_DIGITS = re.compile(r'\D')


def is_valid_email(email: str) -> bool:
    if len(email) > EMAIL_MAX_LENGTH:
        return False
    return EMAIL_PATTERN.fullmatch(email) is not None


def normalize_phone(raw: str, country_prefix: str = DEFAULT_COUNTRY_PREFIX) -> str:
    """
    Reescreve o telefone digitado no formato +<código do país><dígitos>:
    mantém só dígitos (e um '+' inicial), troca o '0' inicial pelo prefixo
    e, se ainda faltar o '+', prefixa o código do país.
    """
    raw = (raw or '').strip()
    digits = _NON_DIGITS.sub('', raw)
    formatted = '+' + digits if raw.startswith('+') else digits

    if formatted.startswith('0'):
        formatted = country_prefix + formatted[1:]

    if formatted and not formatted.startswith('+'):
        formatted = country_prefix + formatted

    return formatted


def validate_phone(raw: str, country_prefix: str = DEFAULT_COUNTRY_PREFIX) -> Tuple[bool, str]:
    """Retorna (é_válido, telefone_normalizado)."""
    formatted = normalize_phone(raw, country_prefix)
    return PHONE_PATTERN.fullmatch(formatted) is not None, formatted


def validate_order_draft(draft: OrderDraft, country_prefix: str = DEFAULT_COUNTRY_PREFIX) -> Dict[str, str]:
    errors = {}

    if not draft.full_name.strip():
        errors['fullName'] = 'Full name is required'
    elif len(draft.full_name) > FULL_NAME_MAX_LENGTH:
        errors['fullName'] = 'Name cannot exceed 100 characters'

    if not draft.email.strip():
        errors['email'] = 'Email is required'
    elif not is_valid_email(draft.email.strip()):
        errors['email'] = 'Please enter a valid email'

    if not draft.phone_number.strip():
        errors['phoneNumber'] = 'Phone number is required'
    else:
        is_valid, _ = validate_phone(draft.phone_number, country_prefix)
        if not is_valid:
            errors['phoneNumber'] = 'Please enter a valid phone number'

    if not draft.district.strip():
        errors['district'] = 'District is required'

    if not draft.address.strip():
        errors['address'] = 'Address is required'
    elif len(draft.address) > ADDRESS_MAX_LENGTH:
        errors['address'] = 'Address cannot exceed 500 characters'

    if draft.notes and len(draft.notes) > NOTES_MAX_LENGTH:
        errors['notes'] = 'Notes cannot exceed 500 characters'

    return errors


# ====================================================================
# DADOS DE ENTREGA DO CHECKOUT DO CARRINHO
# ====================================================================

SHIPPING_EMAIL_PATTERN = re.compile(r'\S+@\S+\.\S+')
SHIPPING_PHONE_PATTERN = re.compile(r'[0-9]{11}', re.ASCII)


def validate_shipping_info(info: ShippingInfo) -> Dict[str, str]:
    """Regras do formulário de entrega (telefone local de 11 dígitos, sem prefixo)."""
    errors = {}

    if not info.full_name.strip():
        errors['fullName'] = 'Full name is required'

    email = info.email.strip()
    if not email:
        errors['email'] = 'Email is required'
    elif len(email) > EMAIL_MAX_LENGTH or SHIPPING_EMAIL_PATTERN.fullmatch(email) is None:
        errors['email'] = 'Invalid email format'

    if not info.phone.strip():
        errors['phone'] = 'Phone number is required'
    elif SHIPPING_PHONE_PATTERN.fullmatch(info.phone) is None:
        errors['phone'] = 'Invalid phone number (11 digits required)'

    if not info.address.strip():
        errors['address'] = 'Address is required'
    if not info.city.strip():
        errors['city'] = 'City is required'
    if not info.district.strip():
        errors['district'] = 'District is required'
    if not info.zip_code.strip():
        errors['zipCode'] = 'ZIP code is required'

    return errors
