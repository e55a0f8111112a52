import re

def mask_phone(phone: str) -> str:
    """
    Masque un numéro de téléphone en ne laissant que l'indicatif (si présent)
    et les 2 derniers chiffres.
    +880 1712 345678 -> +880 ••• •• 78
    """
    if not phone:
        return ""

    clean_phone = phone.replace(" ", "")

    if len(clean_phone) <= 4:
        return "••••"

    match = re.match(r"^(\+\d{1,3})", clean_phone)
    prefix = match.group(1) if match else ""

    suffix = clean_phone[-2:]

    return f"{prefix} ••• •• {suffix}" if prefix else f"••• •• {suffix}"
