from fastapi import APIRouter

from cryptobreaker.models.schemas import LanguagesResponse
from cryptobreaker.services.preprocessing.language_detector import default_registry

router = APIRouter()


@router.get(
    "",
    response_model=LanguagesResponse,
    summary="List reference languages",
)
async def list_languages() -> LanguagesResponse:
    return LanguagesResponse(languages=default_registry.supported())
