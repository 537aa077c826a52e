import os

import uvicorn

from .config.settings import get_settings

def main():
    """Main entry point for the application"""
    settings = get_settings()
    port = int(os.environ.get("PORT", settings.PORT))
    uvicorn.run(
        "foodscan.api.app:app",
        host=settings.HOST,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
        reload=False  # Disable reload in production
    )

if __name__ == "__main__":
    main()
