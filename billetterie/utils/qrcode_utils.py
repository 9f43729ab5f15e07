import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

def generate_qr_code(data: str, box_size: int = 8, border: int = 4) -> str:
    """
    Encode une chaîne (code de rédemption d'un billet) en QR code PNG.

    Returns:
        Data URL "data:image/png;base64,..." affichable directement côté client
    """
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)

    buffer = BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
