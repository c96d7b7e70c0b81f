# main.py (entry point)
import argparse
import logging
import sys

from PyQt5 import QtWidgets

from config import LOG_FORMAT, LOG_LEVEL, MODEL_BASE_URL, MODEL_NAME
from model_loader import model_url
from ui.main_window import MainWindow, show_splash_screen


def main():
    parser = argparse.ArgumentParser(description="Live single-person pose detection")
    parser.add_argument("--model-base", default=MODEL_BASE_URL, help="Base URL or directory holding <name>_web_model/.")
    parser.add_argument("--model-name", default=MODEL_NAME, help="Model name, e.g. yolo11n.")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level.")
    args, qt_args = parser.parse_known_args()

    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    app = QtWidgets.QApplication(sys.argv[:1] + qt_args)
    main_window = MainWindow(model_url(args.model_base, args.model_name))
    splash = show_splash_screen(main_window)
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
