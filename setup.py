from setuptools import setup, find_packages

setup(
    name="tronsign",
    version="1.0.0",
    description="Automated multi-account classroom check-in for TronClass backends",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests",
        "pyyaml",
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "tronsign=tronsign.cli:main",
        ],
    },
    python_requires=">=3.8",
)
