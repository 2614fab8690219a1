from setuptools import setup, find_packages
from pathlib import Path
import sys

# Check Python version requirement
if sys.version_info < (3, 9):
    raise RuntimeError("SftpPy requires Python 3.9 or newer")

setup(
    name="SftpPy",
    version="1.0.0",
    author="Andrew Hernandez",
    author_email="andromedeyz@hotmail.com",
    description="An async SFTP client library for Python with retrying connections, one-shot operations and recursive directory helpers.",
    long_description=(
        open("README.md", "r", encoding="utf-8").read()
        if Path("README.md").exists()
        else "SftpPy takes the pain out of SFTP transfers. Connect with automatic retry and backoff, list, stat, upload, download, rename and delete remote files, and create or remove whole directory trees - all with clean, awaitable Python code."
    ),
    long_description_content_type="text/markdown",
    url="http://github.com/ApaxPhoenix/SftpPy",
    project_urls={
        "Bug Tracker": "http://github.com/ApaxPhoenix/SftpPy/issues",
        "Source Code": "http://github.com/ApaxPhoenix/SftpPy",
    },
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Communications :: File Sharing",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Networking",
    ],
    python_requires=">=3.9",
    install_requires=[
        "asyncssh>=2.13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    keywords="sftp, ssh, async, file transfer, networking",
    license="MIT",
    zip_safe=False,  # Set to False for packages with data files or C extensions
    include_package_data=True,  # Include files specified in MANIFEST.in
)
