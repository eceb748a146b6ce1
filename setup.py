from setuptools import setup, find_packages

setup(
    name="newlang",
    version="0.1.0",
    description="NewLang: a small imperative language compiled to JavaScript",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="NewLang Project",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    entry_points={
        "console_scripts": [
            "newlang=newlang.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Compilers",
    ],
)
