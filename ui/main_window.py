# ui/main_window.py
import asyncio
import logging
import os

from PyQt5 import QtCore, QtWidgets, QtGui

from canvas import Canvas
from config import SPLASH_IMAGE, VIDEO_FOLDER, VIDEO_HEIGHT, VIDEO_WIDTH
from detect import detect_pose
from errors import PoseDetectionError
from frame_source import ImageSource, VideoSource
from model_loader import LoadingTracker, load_with_state
from video_processor import VideoProcessor, to_qimage

logger = logging.getLogger(__name__)

CAMERA_ITEM = "Camera"
STREAM_URL_ITEM = "Enter stream URL..."


class ModelLoaderThread(QtCore.QThread):
    progress = QtCore.pyqtSignal(float)
    loaded = QtCore.pyqtSignal(object)
    failed = QtCore.pyqtSignal(str)

    def __init__(self, url, parent=None):
        super().__init__(parent)
        self.url = url
        self.tracker = LoadingTracker()
        self.tracker.subscribe(lambda state: self.progress.emit(state.progress))

    def run(self):
        try:
            model = asyncio.run(load_with_state(self.url, self.tracker))
        except PoseDetectionError as e:
            self.failed.emit(str(e))
            return
        self.loaded.emit(model)


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, model_url):
        super().__init__()
        self.setWindowTitle("POSE DETECTION")
        self.resize(1200, 750)
        self.model = None
        self.video_thread = None

        self.init_ui()
        self.loader_thread = ModelLoaderThread(model_url, self)
        self.loader_thread.progress.connect(self.update_progress)
        self.loader_thread.loaded.connect(self.on_model_loaded)
        self.loader_thread.failed.connect(self.show_error)
        self.loader_thread.start()

    def init_ui(self):
        central_widget = QtWidgets.QWidget(self)
        self.setCentralWidget(central_widget)
        h_layout = QtWidgets.QHBoxLayout(central_widget)

        left_panel = QtWidgets.QVBoxLayout()
        self.video_combo = QtWidgets.QComboBox()
        self.btn_image = QtWidgets.QPushButton("Open Image")
        self.btn_stream = QtWidgets.QPushButton("Stream")
        self.btn_stream.setCheckable(True)
        self.progress_bar = QtWidgets.QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setFormat("Loading model... %p%")

        self.btn_image.clicked.connect(self.open_image)
        self.btn_stream.clicked.connect(self.toggle_stream)
        self.btn_image.setEnabled(False)
        self.btn_stream.setEnabled(False)

        left_panel.addWidget(QtWidgets.QLabel("Select Video:"))
        left_panel.addWidget(self.video_combo)
        left_panel.addWidget(self.btn_stream)
        left_panel.addWidget(self.btn_image)
        left_panel.addWidget(self.progress_bar)
        left_panel.addStretch(1)

        self.video_display = QtWidgets.QLabel("No Video", alignment=QtCore.Qt.AlignCenter)
        self.video_display.setFixedSize(VIDEO_WIDTH, VIDEO_HEIGHT)
        self.video_display.setStyleSheet("background-color: #3a3a3a; border: 1px solid #555555;")

        h_layout.addLayout(left_panel, 1)
        h_layout.addWidget(self.video_display, 3)

        self.update_video_combo()

    def update_video_combo(self):
        self.video_combo.clear()
        self.video_combo.addItem(CAMERA_ITEM)
        if os.path.isdir(VIDEO_FOLDER):
            files = [f for f in sorted(os.listdir(VIDEO_FOLDER))
                     if f.lower().endswith((".mp4", ".avi", ".mov", ".mkv"))]
            self.video_combo.addItems([os.path.join(VIDEO_FOLDER, f) for f in files])
        self.video_combo.addItem(STREAM_URL_ITEM)

    def update_progress(self, fraction):
        self.progress_bar.setValue(int(round(fraction * 100)))

    def on_model_loaded(self, model):
        self.model = model
        self.progress_bar.hide()
        self.btn_image.setEnabled(True)
        self.btn_stream.setEnabled(True)

    def stop_stream(self):
        if self.video_thread:
            self.video_thread.stop()
            self.video_thread = None

    def open_image(self):
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Open Image", "", "Images (*.png *.jpg *.jpeg *.bmp *.webp)")
        if not path:
            return
        self.stop_stream()
        self.btn_stream.setChecked(False)
        self.btn_stream.setText("Stream")

        source = ImageSource.from_path(path)
        canvas = Canvas.for_source(source, VIDEO_WIDTH, VIDEO_HEIGHT)
        try:
            asyncio.run(detect_pose(source, self.model, canvas))
        except PoseDetectionError as e:
            logger.error("Error during pose detection: %s", e)
            return
        self.update_video_display(to_qimage(canvas.image))

    def toggle_stream(self, checked):
        if not checked:
            self.stop_stream()
            self.btn_stream.setText("Stream")
            self.video_display.setText("No Video")
            return

        self.stop_stream()
        source = self.video_combo.currentText()
        if source == STREAM_URL_ITEM:
            url, ok = QtWidgets.QInputDialog.getText(self, "Stream URL", "Enter stream URL:")
            if not ok or not url:
                self.btn_stream.setChecked(False)
                return
            source = url

        video = VideoSource(0, realtime=False) if source == CAMERA_ITEM else VideoSource(source)
        if not video.advance() or not video.is_ready:
            video.release()
            QtWidgets.QMessageBox.warning(self, "Source not ready", f"Could not read frames from:\n{source}")
            self.btn_stream.setChecked(False)
            return

        canvas = Canvas.for_source(video, VIDEO_WIDTH, VIDEO_HEIGHT)
        self.video_thread = VideoProcessor(video, self.model, canvas)
        self.video_thread.frame_ready.connect(self.update_video_display)
        self.video_thread.error_signal.connect(self.show_error)
        self.video_thread.start()
        self.btn_stream.setText("Stop Stream")

    def update_video_display(self, q_img):
        self.video_display.setPixmap(QtGui.QPixmap.fromImage(q_img))

    def show_error(self, msg):
        QtWidgets.QMessageBox.critical(self, "Error", msg)

    def closeEvent(self, event):
        self.stop_stream()
        super().closeEvent(event)


def show_splash_screen(main_window):
    if os.path.exists(SPLASH_IMAGE):
        pixmap = QtGui.QPixmap(SPLASH_IMAGE)
    else:
        pixmap = QtGui.QPixmap(800, 600)
        pixmap.fill(QtGui.QColor("darkGray"))
        painter = QtGui.QPainter(pixmap)
        painter.setPen(QtCore.Qt.white)
        painter.setFont(QtGui.QFont("Arial", 24))
        painter.drawText(pixmap.rect(), QtCore.Qt.AlignCenter, "Pose Detection")
        painter.end()

    splash = QtWidgets.QSplashScreen(pixmap)
    splash.show()
    QtWidgets.QApplication.processEvents()
    QtCore.QTimer.singleShot(1500, lambda: (main_window.show(), splash.finish(main_window)))
    return splash
