import time
from dataclasses import dataclass, field
from typing import Callable

BackoffStrategy = Callable[[int, float], float]

def constant_backoff(attempt: int, interval: float) -> float:
    return interval

def exponential_backoff(factor: float = 2.0, max_interval: float = 30.0) -> BackoffStrategy:
    def strategy(attempt: int, interval: float) -> float:
        return min(interval * (factor ** (attempt - 1)), max_interval)
    return strategy

@dataclass
class PollPolicy:
    """
    非同期ジョブのステータス確認ポリシー。
    デフォルトは 3秒間隔 x 120回 (約6分)。テストでは sleep を差し替えて仮想時間で回す。
    """
    max_attempts: int = 120
    interval: float = 3.0
    backoff: BackoffStrategy = constant_backoff
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def delay_for(self, attempt: int) -> float:
        """attempt は 1 始まり"""
        return self.backoff(attempt, self.interval)

    def wait(self, attempt: int):
        self.sleep(self.delay_for(attempt))

    @property
    def ceiling_seconds(self) -> float:
        return sum(self.delay_for(a) for a in range(1, self.max_attempts + 1))
