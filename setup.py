"""Setup for Bleep.

Install for development:
    pip install -e .[test]

Build a macOS .app bundle:
    pip install py2app
    python setup.py py2app
"""

from setuptools import find_packages, setup

APP = ["main.py"]
DATA_FILES = []
OPTIONS = {
    "argv_emulation": False,
    "iconfile": None,
    "plist": {
        "CFBundleName": "Bleep",
        "CFBundleDisplayName": "Bleep",
        "CFBundleIdentifier": "com.bleep.app",
        "CFBundleVersion": "0.1.0",
        "CFBundleShortVersionString": "0.1.0",
        "LSMinimumSystemVersion": "13.0",
    },
}

setup(
    app=APP,
    data_files=DATA_FILES,
    options={"py2app": OPTIONS},
    name="Bleep",
    version="0.1.0",
    packages=find_packages(include=["bleep", "bleep.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.5",
        "numpy",
        "SQLAlchemy>=2.0",
        "pydantic>=2.0",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["bleep = bleep.__main__:main"]},
)
