from setuptools import setup, find_packages

# Read version from version.py
with open("safe_plex_reboot/version.py", "r", encoding="utf-8") as f:
    exec(f.read())

# Read long description from README
with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

# Read requirements
with open("requirements.txt", "r", encoding="utf-8") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

def get_data_files():
    """Get example files installed alongside the package."""
    return [
        ("share/safe-plex-reboot", ["plex-reboot.conf.example"]),
    ]

setup(
    name="safe-plex-reboot",
    version=__version__,  # Version imported from version.py
    description="Reboot a host only when Plex Media Server has no active streams",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Systems Administration",
        "Topic :: Multimedia :: Video",
        "Topic :: Utilities",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "responses>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "safe-plex-reboot=safe_plex_reboot.main:main",
        ],
    },
    data_files=get_data_files(),
    include_package_data=True,
    zip_safe=False,
)
