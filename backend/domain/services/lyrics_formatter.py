import re
from typing import List

SENTENCE_SEPARATORS_REGEX = r'[.!?]'

# Verse / Chorus / Verse / Chorus の固定構成。verse と chorus は同じ本文を使う
EXACT_SONG_STRUCTURE = ["Verse", "Chorus", "Verse", "Chorus"]

def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in re.split(SENTENCE_SEPARATORS_REGEX, text) if s.strip()]

def format_exact_lyrics(mantra_text: str) -> str:
    """
    マントラの文言をそのまま使い、歌の構成に整形する (AI 呼び出しなし)。
    """
    sentences = split_sentences(mantra_text)
    if not sentences:
        return mantra_text

    verse = "\n".join(sentences)
    sections = [f"[{name}]\n{verse}" for name in EXACT_SONG_STRUCTURE]
    return "\n\n".join(sections)

def fallback_title(mantra_text: str, word_count: int = 4) -> str:
    words = [w for w in mantra_text.split(" ") if w]
    return " ".join(words[:word_count])

def clean_title(raw_title: str) -> str:
    return re.sub(r"['\"]", "", raw_title or "").strip()
