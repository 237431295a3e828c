#!/usr/bin/env python

from setuptools import setup, find_packages

setup(
    name="eq_raid_tools",
    version="0.2.0",
    description="Python tools for EverQuest raid attendance and loot tracking from client logs",
    author="EQ Raid Tools contributors",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    package_data={
        "config": ["profiles/*.example", "secrets/*.example"],
    },
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.25.0",
        "pandas>=1.0.0",
        "openpyxl>=3.0.0",
        "watchdog>=2.1.0",
        "tzdata",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "eq-parse-raid=eq_raid_tools.tools.raid_parser:main",
            "eq-auto-parse=eq_raid_tools.tools.auto_parser:main",
            "eq-watch-log=eq_raid_tools.tools.live_watcher:main",
        ],
    },
)
