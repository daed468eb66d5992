"""
python -m build
twine upload dist/*
"""

from setuptools import setup, find_packages


def sacrud_setup():
    with open("requirements.txt", "rt") as fp:
        install_requires = fp.read().strip().split("\n")

    about = {}
    with open("sacrud/__about__.py", "rt") as fp:
        exec(fp.read(), about)
    version = about["__version__"]

    setup(
        name="sacrud",
        packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
        version=version,
        license="MIT",
        description=about["__description__"],
        long_description=open("README.rst").read(),
        keywords=["SqlAlchemy", "Flask", "FastAPI", "REST", "CRUD", "pydantic"],
        python_requires=">=3.9, <4",
        install_requires=install_requires,
        classifiers=[
            "Development Status :: 3 - Alpha",
            "License :: OSI Approved :: MIT License",
            "Intended Audience :: Developers",
            "Framework :: Flask",
            "Framework :: FastAPI",
            "Topic :: Software Development :: Libraries",
            "Environment :: Web Environment",
            "Programming Language :: Python :: 3.12",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.9",
        ],
        extras_require={"test": ["pytest>=7", "httpx>=0.24"], "examples": ["uvicorn"]},
    )


sacrud_setup()  # pragma: no cover
