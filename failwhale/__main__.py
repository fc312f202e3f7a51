"""Entry point for `python -m failwhale`."""

from .app import Application


def main() -> None:
    app = Application()
    app.run()


if __name__ == "__main__":
    main()
