from fastapi import APIRouter

from cryptobreaker.core.exceptions import CiphertextTooLongError, UnknownLanguageError
from cryptobreaker.dependencies import SettingsDep
from cryptobreaker.models.schemas import AnalyzeRequest, AnalyzeResponse, ErrorResponse
from cryptobreaker.services.analysis.statistics import FrequencyStatistics
from cryptobreaker.services.detection.cipher_detector import CipherClassifier

router = APIRouter()


@router.post(
    "",
    response_model=AnalyzeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
    },
    summary="Analyze ciphertext",
    description=(
        "Compute the statistical profile of a ciphertext, classify the "
        "likely cipher type and guess the language."
    ),
)
async def analyze_ciphertext(
    request: AnalyzeRequest,
    settings: SettingsDep,
) -> AnalyzeResponse:
    """
    Analyze ciphertext without breaking it.

    The analysis pipeline:
    1. Generate statistical profile (frequencies, IOC, entropy, repeats)
    2. Classify the cipher type
    3. Detect the closest registered language
    """
    if len(request.ciphertext) > settings.max_ciphertext_length:
        raise CiphertextTooLongError(len(request.ciphertext), settings.max_ciphertext_length)

    analyzer = FrequencyStatistics()
    if request.language not in analyzer.registry:
        raise UnknownLanguageError(request.language)

    statistics = analyzer.analyze(request.ciphertext, request.language)
    detection = CipherClassifier(
        analyzer=analyzer, language=request.language, settings=settings
    ).detect(request.ciphertext)
    language = analyzer.detect_language(request.ciphertext)

    return AnalyzeResponse(
        statistics=statistics,
        detection=detection,
        detected_language=language.language,
        language_confidence=language.confidence,
    )
