from typing import Optional


class GenerationError(Exception):
    """
    楽曲生成フローで発生したエラーの基底クラス。
    message はそのままUIに表示できる文言とする。
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LyricsGenerationError(GenerationError):
    pass


class SynthesisError(GenerationError):
    timed_out = False


class SynthesisRejectedError(SynthesisError):
    pass


class SynthesisTimeoutError(SynthesisError):
    timed_out = True

    def __init__(self, message: str, attempts: int, task_id: Optional[str] = None):
        super().__init__(message)
        self.attempts = attempts
        self.task_id = task_id


class LLMError(Exception):
    pass


class InvalidStatusTransition(Exception):
    def __init__(self, current: str, target: str):
        super().__init__(f"Invalid song status transition: {current} -> {target}")
        self.current = current
        self.target = target
