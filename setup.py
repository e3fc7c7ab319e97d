"""Setup configuration for the Pollguard Discord bot."""

from setuptools import setup, find_packages

setup(
    name="pollguard",
    version="0.0.1",
    description="A Discord bot that removes polls from configured guilds and logs each removal",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "py-cord>=2.5",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "pollguard=pollguard.main:main",
        ],
    },
)
