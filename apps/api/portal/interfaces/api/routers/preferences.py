from fastapi import APIRouter, Depends

from portal.application.preferences import DARK, LIGHT, PreferenceStore
from portal.interfaces.api.deps import get_preferences
from portal.interfaces.api.schemas import ThemeResponse

router = APIRouter()


def _theme(dark: bool) -> ThemeResponse:
    return ThemeResponse(dark=dark, theme=DARK if dark else LIGHT)


@router.get("/preferences/theme", response_model=ThemeResponse)
def read_theme(preferences: PreferenceStore = Depends(get_preferences)) -> ThemeResponse:
    return _theme(preferences.read())


@router.post("/preferences/theme/toggle", response_model=ThemeResponse)
def toggle_theme(preferences: PreferenceStore = Depends(get_preferences)) -> ThemeResponse:
    return _theme(preferences.toggle())
