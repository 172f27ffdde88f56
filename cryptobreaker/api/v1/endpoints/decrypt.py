from fastapi import APIRouter

from cryptobreaker.core.exceptions import CiphertextTooLongError, EngineNotFoundError
from cryptobreaker.dependencies import SettingsDep
from cryptobreaker.models.schemas import DecryptRequest, DecryptResponse, ErrorResponse
from cryptobreaker.services.engines.registry import create_engine

router = APIRouter()


@router.post(
    "",
    response_model=DecryptResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or key"},
        404: {"model": ErrorResponse, "description": "Cipher type not supported"},
    },
    summary="Decrypt ciphertext",
    description="Decrypt ciphertext using a specified cipher type and key.",
)
async def decrypt_ciphertext(
    request: DecryptRequest,
    settings: SettingsDep,
) -> DecryptResponse:
    """Decrypt with a known key; casing and punctuation are kept."""
    if len(request.ciphertext) > settings.max_ciphertext_length:
        raise CiphertextTooLongError(len(request.ciphertext), settings.max_ciphertext_length)

    engine = create_engine(request.cipher_type, settings=settings)
    if engine is None:
        raise EngineNotFoundError(request.cipher_type.value)

    # InvalidKeyError propagates to the 400 handler
    plaintext = engine.decrypt_with_key(request.ciphertext, request.key)

    return DecryptResponse(
        plaintext=plaintext,
        key_used=request.key,
        explanation=engine.explain(request.ciphertext, plaintext, request.key),
    )
