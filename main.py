"""SecretDrop entrypoint."""

from app.config import get_settings


def main() -> None:
    """Print how to serve the API.

    Returns
    -------
    None
        Prints the application import path and the public base URL.
    """
    settings = get_settings()
    print(f"Run with: uvicorn app.main:app --reload  (share links use {settings.public_base_url})")


if __name__ == "__main__":
    main()
