import argparse
import logging
import sys

from PyQt5.QtCore import QCoreApplication

from . import configure_logging
from .config import load_config
from .controllers import AnnotationController


def main(argv=None):
    """
    Open a PDF with its saved annotations and export them.

    Prints the Markdown export unless another output is requested.
    """
    parser = argparse.ArgumentParser(prog="inkmark")
    parser.add_argument("file_path", help="PDF document to open")
    parser.add_argument("--json", action="store_true", help="print annotations as JSON")
    parser.add_argument("--export-pdf", metavar="OUTPUT",
                        help="write annotations into a copy of the PDF")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    controller = AnnotationController(load_config(), parent=app)
    if not controller.open_document(args.file_path):
        return 1

    try:
        if args.export_pdf:
            result = controller.export_pdf(args.export_pdf)
            if result is None:
                return 1
            written, skipped = result
            print(f"Exported {written} annotations ({skipped} not found)")
        elif args.json:
            print(controller.export_json())
        else:
            print(controller.export_markdown())
    finally:
        controller.close_document()
    return 0


if __name__ == '__main__':
    sys.exit(main())
