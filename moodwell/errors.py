# domain errors for the report pipeline
# routers translate these into http responses, storage errors are never wrapped


class ReportError(Exception):
    """base class for report pipeline rejections"""


class InsufficientDataError(ReportError):
    """the aggregation window holds fewer samples than the report kind needs"""

    def __init__(self, kind: str, required: int, found: int):
        self.kind = kind
        self.required = required
        self.found = found
        super().__init__(
            f"Not enough data for a {kind} report: need at least {required}, found {found}"
        )


class QuotaExceededError(ReportError):
    """daily on-demand report limit reached"""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"You can generate at most {limit} reports per day")


class ReportNotFoundError(ReportError):
    """report does not exist or belongs to someone else"""

    def __init__(self):
        super().__init__("Report not found")


class GenerationUnavailableError(ReportError):
    """language model call failed or returned unusable output"""
