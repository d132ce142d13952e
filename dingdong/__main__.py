"""Allow ``python -m dingdong``."""

from .cli import run

if __name__ == "__main__":
    run()
