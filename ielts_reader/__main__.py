"""
Module entry point for: python -m ielts_reader

Allows running the reader directly as a module:
    python -m ielts_reader parse <pdf_path> [options]
    python -m ielts_reader take <pdf_path> [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
