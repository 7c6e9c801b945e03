"""
Module entry point for: python -m sigstamp

Allows running the pipeline directly as a module:
    python -m sigstamp run <pdf_path> <signature_path> [options]
    python -m sigstamp stamp <pdf_path> <signature_path> [options]
    python -m sigstamp info <pdf_path>
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
