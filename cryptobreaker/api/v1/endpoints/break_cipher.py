from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from cryptobreaker.core.exceptions import (
    CiphertextTooLongError,
    EngineNotFoundError,
    UnknownLanguageError,
    ValidationError,
)
from cryptobreaker.dependencies import SettingsDep
from cryptobreaker.models.schemas import BreakRequest, BreakResponse, ErrorResponse
from cryptobreaker.services.engines.registry import create_engine
from cryptobreaker.services.preprocessing.language_detector import default_registry

router = APIRouter()


@router.post(
    "",
    response_model=BreakResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or options"},
        404: {"model": ErrorResponse, "description": "Cipher type not supported"},
    },
    summary="Break ciphertext",
    description=(
        "Recover plaintext and key for a known cipher type without the key. "
        "Options are passed to the engine (e.g. max_iterations, seed, "
        "max_key_length)."
    ),
)
async def break_ciphertext(
    request: BreakRequest,
    settings: SettingsDep,
) -> BreakResponse:
    """
    Run the engine for the requested cipher type.

    Engines never raise on bad ciphertext; an unusable input comes back
    as an empty result with ``valid`` false.
    """
    if len(request.ciphertext) > settings.max_ciphertext_length:
        raise CiphertextTooLongError(len(request.ciphertext), settings.max_ciphertext_length)

    if request.language not in default_registry:
        raise UnknownLanguageError(request.language)

    try:
        engine = create_engine(
            request.cipher_type,
            language=request.language,
            settings=settings,
            **request.options,
        )
    except TypeError as e:
        raise ValidationError(
            f"Unsupported option for {request.cipher_type.value}",
            {"options": sorted(request.options)},
        ) from e

    if engine is None:
        raise EngineNotFoundError(request.cipher_type.value)

    result = await run_in_threadpool(engine.analyze, request.ciphertext)
    alternatives = await run_in_threadpool(
        engine.get_possible_solutions, request.ciphertext
    )

    return BreakResponse(
        result=result,
        alternatives=[a for a in alternatives if a != result.plaintext],
    )
