import math
from typing import Callable, List, Optional

# 音源側から行単位のタイミング情報は得られないため、
# 全ての行が同じ長さの時間を占めるものとして現在行を推定する。

def split_lyric_lines(lyrics: Optional[str]) -> List[str]:
    """歌詞テキストを空行を除いたトリム済みの行リストに分割する"""
    if not lyrics:
        return []
    return [line.strip() for line in lyrics.split("\n") if line.strip()]

def is_known_duration(duration: Optional[float]) -> bool:
    # メタデータ読み込み前は 0 / NaN / Infinity が渡される
    if duration is None:
        return False
    try:
        return math.isfinite(duration) and duration > 0
    except TypeError:
        return False

def compute_current_lyric_line(
    lines: List[str],
    duration: Optional[float],
    current_time: float,
    lead_time: float = 0.0
) -> Optional[int]:
    """
    Returns the index of the line being sung at current_time, or None when
    nothing should be highlighted (no lines or unknown duration).
    """
    if not lines or not is_known_duration(duration):
        return None
    if current_time is None or not math.isfinite(current_time):
        return None

    time_per_line = duration / len(lines)
    index = math.floor((current_time + lead_time) / time_per_line)
    return min(max(index, 0), len(lines) - 1)

def line_start_times(lines: List[str], duration: Optional[float], lead_time: float = 0.0) -> List[float]:
    if not lines or not is_known_duration(duration):
        return []
    time_per_line = duration / len(lines)
    return [max(0.0, i * time_per_line - lead_time) for i in range(len(lines))]

def _format_lrc_timestamp(seconds: float) -> str:
    minutes = int(seconds // 60)
    rest = seconds - minutes * 60
    return f"[{minutes:02d}:{rest:05.2f}]"

def format_lrc(
    lines: List[str],
    duration: Optional[float],
    lead_time: float = 0.0,
    title: Optional[str] = None
) -> str:
    """均等割りのタイムラインから LRC 形式の歌詞を生成する (カラオケ/動画書き出し用)"""
    starts = line_start_times(lines, duration, lead_time)
    if not starts:
        return ""

    output = []
    if title:
        output.append(f"[ti:{title}]")
    output.append(f"[length:{_format_lrc_timestamp(duration)[1:-1]}]")
    for start, line in zip(starts, lines):
        output.append(f"{_format_lrc_timestamp(start)}{line}")
    return "\n".join(output)

class LyricTimeline:
    """
    再生中の歌詞ハイライトを管理する。
    time-update イベントごとに update() を呼び出す想定なので、処理は軽量に保つ。
    """

    def __init__(
        self,
        lyrics: Optional[str],
        lead_time: float = 0.0,
        on_scroll: Optional[Callable[[int], None]] = None
    ):
        self.lines = split_lyric_lines(lyrics)
        self.lead_time = lead_time
        self.on_scroll = on_scroll
        self.current_index: Optional[int] = None
        self._last_scrolled_index: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def update(self, current_time: float, duration: Optional[float], is_playing: bool) -> Optional[int]:
        index = compute_current_lyric_line(self.lines, duration, current_time, self.lead_time)
        self.current_index = index

        # 一時停止中や同じ行のままではスクロールしない (ジッター防止)
        if index is not None and is_playing and index != self._last_scrolled_index:
            self._last_scrolled_index = index
            if self.on_scroll:
                self.on_scroll(index)
        return index

    def reset(self):
        self.current_index = None
        self._last_scrolled_index = None
