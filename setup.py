from setuptools import setup, find_packages

setup(
    name="devchain",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main", "cli"],
    install_requires=[
        "pynacl>=1.5.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "devchain=cli:main",
        ],
    },
    python_requires=">=3.8",
)
