from setuptools import setup, find_packages


with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="ftquant",
    version="0.1.0",
    author="Andrey Golovanov",
    description="A library for fault-tree analysis and probabilistic risk quantification.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.11",
    install_requires=["networkx", "numpy", "pandas"],
    extras_require={"test": ["pytest"]},
    tests_require=["pytest"],
)
