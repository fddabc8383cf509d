"""Query keys shared by every call site that reads or patches the cache."""

DREAMS = ("dreams",)
VISUALIZATIONS_HISTORY = ("visualizations-history",)
DREAM_IMAGES = ("dream-images",)
PRIVATE_ROUTINES = ("private-routines",)
TODAY_PRIVATE_ROUTINE = ("today-private-routine",)
USER_PROFILE = ("user-profile",)
DAILY_READ = ("daily-read",)
VISUALIZATION_CONFIG = ("visualization-config",)

# Both projections of the routine; every block mutation reconciles both
ROUTINE_QUERIES = (PRIVATE_ROUTINES, TODAY_PRIVATE_ROUTINE)


def dreams(archived: bool = False) -> tuple:
    return DREAMS + (archived,)


def dream_history(dream_id: str) -> tuple:
    return VISUALIZATIONS_HISTORY + (dream_id,)


def dream_images(dream_id: str) -> tuple:
    return DREAM_IMAGES + (dream_id,)
