from setuptools import setup, find_packages


setup(
    name="rgssad",
    version="0.1",
    packages=find_packages(include=["rgssad", "rgssad.*"]),
    description="Reader and extractor for RPG Maker XP/VX encrypted RGSSAD archives.",
    author="vercingetorx",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "rgssad=rgssad.cli:main",
        ]
    },
)
