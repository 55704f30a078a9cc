from fastapi import APIRouter

from domain.constants import (
    GENRES,
    RHYTHM_OPTIONS,
    PLAYLIST_TYPES,
    VOCAL_GENDERS,
    VOCAL_STYLES,
    VOCAL_STYLE_DESCRIPTIONS,
)

router = APIRouter()

@router.get("/api/options")
def get_options():
    """作成画面で選択できるジャンル・リズム・ボーカルの一覧"""
    return {
        "genres": GENRES,
        "rhythms": RHYTHM_OPTIONS,
        "playlist_types": PLAYLIST_TYPES,
        "vocal_genders": VOCAL_GENDERS,
        "vocal_styles": [
            {"value": style, "description": VOCAL_STYLE_DESCRIPTIONS[style]} for style in VOCAL_STYLES
        ],
    }
