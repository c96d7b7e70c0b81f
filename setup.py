# setup.py
from setuptools import setup

setup(
    name="livepose",
    version="1.0",
    description="Live Pose - real-time single-person pose detection on images and video",
    packages=["inference_models", "ui"],
    py_modules=[
        "canvas",
        "config",
        "detect",
        "errors",
        "frame_source",
        "inference_engine",
        "main",
        "model_loader",
        "overlay",
        "preprocess",
        "tensor_engine",
        "video_processor",
    ],
    include_package_data=True,
    install_requires=[
        'PyQt5>=5.15.9',
        'opencv-python>=4.8.0.76',
        'ultralytics>=8.3.0',
        'torch>=1.8.0',
        'supervision>=0.22.0,<0.30.6',
        'numpy>=1.24.3',
    ],
    extras_require={
        'test': ['pytest>=7.4.0'],
    },
    entry_points={
        'gui_scripts': [
            'livepose = main:main',
        ]
    },
    python_requires='>=3.9',
)
