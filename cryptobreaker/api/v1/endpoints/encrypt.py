from fastapi import APIRouter

from cryptobreaker.core.exceptions import CiphertextTooLongError, EngineNotFoundError
from cryptobreaker.dependencies import SettingsDep
from cryptobreaker.models.schemas import EncryptRequest, EncryptResponse, ErrorResponse
from cryptobreaker.services.engines.registry import create_engine

router = APIRouter()


@router.post(
    "",
    response_model=EncryptResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or key"},
        404: {"model": ErrorResponse, "description": "Cipher type not supported"},
    },
    summary="Encrypt plaintext",
    description=(
        "Encrypt plaintext with a cipher type. A random key is generated "
        "when none is given."
    ),
)
async def encrypt_plaintext(
    request: EncryptRequest,
    settings: SettingsDep,
) -> EncryptResponse:
    """Encrypt plaintext, mainly for producing test ciphertexts."""
    if len(request.plaintext) > settings.max_ciphertext_length:
        raise CiphertextTooLongError(len(request.plaintext), settings.max_ciphertext_length)

    engine = create_engine(request.cipher_type, settings=settings)
    if engine is None:
        raise EngineNotFoundError(request.cipher_type.value)

    key = request.key if request.key is not None else engine.generate_random_key()

    return EncryptResponse(
        ciphertext=engine.encrypt(request.plaintext, key),
        cipher_type=request.cipher_type,
        key_used=key,
    )
