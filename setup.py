import setuptools

setuptools.setup(
    name="infra-sizing",
    versioning="distance",
    setup_requires="setupmeta",
    description=(
        "Sizes container clusters and VM fleets, estimates what they cost and "
        "projects their growth"
    ),
    python_requires=">=3.10,<3.13",
    packages=setuptools.find_packages(exclude=("tests*",)),
    install_requires=[
        "pydantic>2.0",
        "scipy",
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    entry_points={
        "console_scripts": [
            "infra-sizing = infra_sizing.tools.sizing_report:main",
        ]
    },
)
