"""Setup configuration for the Mutecord voice announcer bot."""

from setuptools import setup, find_packages

setup(
    name="mutecord",
    version="0.1.0",
    description="A Discord bot that announces voice mute and deafen changes",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.12",
    install_requires=[
        "py-cord",
        "python-dotenv",
        "PyYAML",
        "prompt_toolkit",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "mutecord=mutecord.main:main",
        ],
    },
)
