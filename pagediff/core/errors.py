class PageDiffError(Exception):
    """Base class for pagediff errors."""


class InvalidInput(PageDiffError):
    """Baseline or current HTML is empty or missing."""


class RenderingFailure(PageDiffError):
    """Tokenizing, aligning or grouping failed for a comparison."""


class DiffTooLarge(RenderingFailure):
    def __init__(self, baseline_tokens: int, current_tokens: int, limit: int):
        self.baseline_tokens = baseline_tokens
        self.current_tokens = current_tokens
        self.limit = limit
        super().__init__(
            f"documents too large to compare ({baseline_tokens} and "
            f"{current_tokens} tokens, limit {limit})"
        )


class BaselineNotFound(PageDiffError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"no baseline captured for {url}")


class CaptureError(PageDiffError):
    def __init__(self, url: str, note: str):
        self.url = url
        self.note = note
        super().__init__(f"could not capture {url}: {note}")
