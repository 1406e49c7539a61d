class MealMateError(Exception):
    """Base class for every error raised by the meal planning core."""


class EmptyInput(MealMateError, ValueError):
    """Input rejected before any request was made (blank entry, empty image)."""


# --- AI collaborator failures ---

class AIServiceError(MealMateError):
    pass


class RequestFailure(AIServiceError):
    """Network, provider or timeout failure. These are not told apart."""


class MalformedResponse(AIServiceError):
    """The model answered, but not in the shape we asked for."""


# --- Operation failures (chain one of the above) ---

class PlanGenerationError(MealMateError):
    pass


class SwapFetchError(MealMateError):
    pass


class ScanError(MealMateError):
    pass
