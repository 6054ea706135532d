# setup.py
"""Setup script for imgstash."""

import os

from setuptools import setup, find_packages

setup(
    name="imgstash",
    version="1.0.0",
    description="Content-addressed image store with metadata stripping and thumbnails",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="imgstash Team",
    packages=find_packages(include=["imgstash", "imgstash.*"]),
    python_requires=">=3.8",
    install_requires=[
        "Pillow>=9.3.0",
        "imagehash>=4.0.0",
        "tqdm>=4.50.0",
        "requests>=2.25.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "pytest-cov>=2.10.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "imgstash=imgstash.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Multimedia :: Graphics",
    ],
)
