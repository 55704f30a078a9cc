from typing import Dict, List

GENRES = ["soul", "blues", "hip-hop", "reggae", "pop", "acoustic"]

# morning/daytime/bedtime are curated; custom songs carry no playlist tag
PLAYLIST_TYPES = ["morning", "daytime", "bedtime", "custom"]
CURATED_PLAYLIST_TYPES = ["morning", "daytime", "bedtime"]

CURATED_PLAYLISTS = [
    {
        "name": "Morning Motivation",
        "type": "morning",
        "description": "Start your day with energizing mantras that set a positive tone",
    },
    {
        "name": "Daytime Focus",
        "type": "daytime",
        "description": "Stay centered and driven with mantras for the middle of your day",
    },
    {
        "name": "Bedtime Reflection",
        "type": "bedtime",
        "description": "Wind down with peaceful mantras for reflection and rest",
    },
]

VOCAL_GENDERS = ["male", "female"]

# SunoAPI expects a single-character vocal gender
VOCAL_GENDER_CODES: Dict[str, str] = {
    "male": "m",
    "female": "f",
}

VOCAL_STYLES = ["warm", "powerful", "soft", "energetic", "soulful", "gritty"]

VOCAL_STYLE_DESCRIPTIONS: Dict[str, str] = {
    "warm": "Comforting and gentle",
    "powerful": "Strong and commanding",
    "soft": "Delicate and soothing",
    "energetic": "Dynamic and uplifting",
    "soulful": "Deep and emotional",
    "gritty": "Raw and authentic",
}

RHYTHM_OPTIONS: Dict[str, List[Dict[str, str]]] = {
    "soul": [
        {"value": "slow-groove", "label": "Slow Groove", "description": "Laid-back 70 BPM pocket with warm backbeat"},
        {"value": "motown", "label": "Motown", "description": "Upbeat four-on-the-floor with tambourine drive"},
        {"value": "neo-soul", "label": "Neo Soul", "description": "Swung, behind-the-beat drums with jazzy chords"},
    ],
    "blues": [
        {"value": "shuffle", "label": "Shuffle", "description": "Classic triplet shuffle feel"},
        {"value": "slow-blues", "label": "Slow Blues", "description": "12/8 slow burn for heavy emotion"},
        {"value": "boogie", "label": "Boogie", "description": "Driving boogie-woogie bass line"},
    ],
    "hip-hop": [
        {"value": "boom-bap", "label": "Boom Bap", "description": "Hard-hitting kick and snare, 90s style"},
        {"value": "trap", "label": "Trap", "description": "Rolling hi-hats and deep 808s"},
        {"value": "lo-fi", "label": "Lo-Fi", "description": "Dusty, mellow beats for reflection"},
    ],
    "reggae": [
        {"value": "one-drop", "label": "One Drop", "description": "Kick and snare on the third beat"},
        {"value": "rockers", "label": "Rockers", "description": "Steady kick on every beat"},
        {"value": "steppers", "label": "Steppers", "description": "Marching four-on-the-floor energy"},
    ],
    "pop": [
        {"value": "upbeat", "label": "Upbeat", "description": "Bright, danceable 120 BPM groove"},
        {"value": "ballad", "label": "Ballad", "description": "Slow, emotional build"},
        {"value": "synth-pop", "label": "Synth Pop", "description": "Electronic pulses and shimmering pads"},
    ],
    "acoustic": [
        {"value": "fingerstyle", "label": "Fingerstyle", "description": "Gentle picked guitar patterns"},
        {"value": "strummed", "label": "Strummed", "description": "Open, rhythmic strumming"},
        {"value": "folk", "label": "Folk", "description": "Simple campfire feel with light percussion"},
    ],
}

def rhythms_for(genre: str) -> List[str]:
    return [r["value"] for r in RHYTHM_OPTIONS.get(genre, [])]
