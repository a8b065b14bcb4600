from setuptools import setup, find_packages

setup(
    name="reliefopt",
    version="0.2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"reliefopt": ["database/*.json"]},
    install_requires=[
        "fastapi>=0.111.0",
        "uvicorn[standard]>=0.30.0",
        "pydantic>=2.7.0",
        "pandas>=2.2.0",
        "requests>=2.31.0",
        "ortools>=9.10.4067",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "httpx>=0.27.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "reliefopt=reliefopt.cli:main",
        ],
    },
)
