# setup.py
from setuptools import setup, find_packages

setup(
    name="softmacs",
    version="0.1.0",
    description="Fexpr evaluator core with delimited continuations and a content-addressed term store",
    packages=find_packages(include=["softmacs", "softmacs.*"]),
    python_requires=">=3.10",
    install_requires=[],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    zip_safe=False,
)
