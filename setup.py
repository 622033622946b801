"""
python -m build
twine upload dist/*
"""

from setuptools import setup, find_packages


def restmodel_setup():
    with open("requirements.txt", "rt") as fp:
        install_requires = fp.read().strip().split("\n")

    version = "0.1.0"

    setup(
        name="restmodel",
        packages=find_packages(exclude=["tests", "tests.*", "examples"]),
        version=version,
        license="MIT",
        description="restmodel : model-driven JSON:API resources for FastAPI",
        long_description=open("README.rst").read(),
        keywords=["FastAPI", "REST", "JsonAPI", "OpenAPI", "SqlAlchemy"],
        python_requires=">=3.8, <4",
        install_requires=install_requires,
        classifiers=[
            "Development Status :: 3 - Alpha",
            "License :: OSI Approved :: MIT License",
            "Intended Audience :: Developers",
            "Framework :: FastAPI",
            "Topic :: Software Development :: Libraries",
            "Environment :: Web Environment",
            "Programming Language :: Python :: 3",
        ],
        extras_require={"server": ["uvicorn>=0.20"], "test": ["pytest>=7.0", "httpx>=0.24"]},
    )


restmodel_setup()  # pragma: no cover
