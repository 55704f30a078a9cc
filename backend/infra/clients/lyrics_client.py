from typing import Callable, Optional
from sqlmodel import Session

from domain.exceptions import LyricsGenerationError
from domain.services.lyrics_formatter import format_exact_lyrics, fallback_title, clean_title
from utils.logger import get_logger

logger = get_logger(__name__)

# (prompt, system_prompt, max_tokens) -> text
TextGenerator = Callable[[str, Optional[str], int], str]

LYRICS_SYSTEM_PROMPT = (
    "You are a skilled songwriter who transforms personal mantras and affirmations into powerful song lyrics. "
    "Create lyrics that are uplifting, emotionally resonant, and maintain the core message of the user's mantra. "
    "The lyrics should be appropriate for the {genre} genre."
)

LYRICS_USER_PROMPT = (
    "Transform this personal mantra into song lyrics for a {genre} song:\n\n"
    "\"{text}\"\n\n"
    "Create 2-3 verses with a memorable chorus. Keep the core message and positive energy of the original mantra. "
    "Make it singable and emotionally moving."
)

TITLE_SYSTEM_PROMPT = (
    "You are a creative songwriter. Generate short, inspiring song titles (3-6 words) based on the user's mantra. "
    "The title should capture the essence and emotion of their affirmation."
)

class LyricsClient:
    """
    タイトル・歌詞生成の窓口。LLM呼び出しは text_generator として注入する。
    """

    def __init__(self, text_generator: TextGenerator):
        self.text_generator = text_generator

    @classmethod
    def from_session(cls, session: Session) -> "LyricsClient":
        from utils.llm import generate_text

        def generator(prompt: str, system_prompt: Optional[str], max_tokens: int) -> str:
            return generate_text(session, prompt, system_prompt=system_prompt, max_tokens=max_tokens)

        return cls(generator)

    def generate_title(self, text: str) -> str:
        """タイトルは装飾的な情報なので、失敗してもマントラ冒頭の単語で代替する"""
        logger.info(f"Generating title for mantra: \"{text[:50]}...\"")
        try:
            raw = self.text_generator(
                f"Create an inspiring song title for this mantra: \"{text}\"",
                TITLE_SYSTEM_PROMPT,
                50
            )
        except Exception as e:
            logger.error(f"Error generating title: {e}")
            raw = ""

        title = clean_title(raw)
        if not title:
            title = fallback_title(text)
            logger.warning(f"Using fallback title: \"{title}\"")
            return title

        logger.info(f"Generated title: \"{title}\"")
        return title

    def generate_lyrics(self, text: str, genre: str, use_exact_lyrics: bool = False) -> str:
        if use_exact_lyrics:
            return format_exact_lyrics(text)

        logger.info(f"Generating lyrics for {genre} song from mantra: \"{text[:50]}...\"")
        try:
            lyrics = self.text_generator(
                LYRICS_USER_PROMPT.format(genre=genre, text=text),
                LYRICS_SYSTEM_PROMPT.format(genre=genre),
                1000
            )
        except Exception as e:
            logger.error(f"Error generating lyrics: {e}")
            raise LyricsGenerationError(f"Failed to generate song lyrics: {e}") from e

        if not lyrics or not lyrics.strip():
            logger.error("Lyrics service returned empty lyrics")
            raise LyricsGenerationError("Failed to generate song lyrics: the lyrics service returned an empty response")

        logger.info(f"Generated lyrics ({len(lyrics)} chars)")
        return lyrics.strip()
