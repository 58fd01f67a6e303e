from setuptools import find_packages, setup

setup(
    name="lockstep",
    version="0.1.0",
    description="Resumable procedures that run in lockstep with their caller",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11",
    install_requires=[
        "typing_extensions >= 4.6",
    ],
    extras_require={
        "test": [
            "pytest >= 7",
        ],
    },
)
