from .env import load_project_dotenv  # noqa: F401
from .event_bus import ChangeFeed, Subscription  # noqa: F401

# Automatically load project-level .env once utils is imported.
load_project_dotenv()
