from setuptools import setup, find_packages

setup(
    name="gridauto",
    version="1.0.0",
    description="Row automation for virtualized web data grids",
    packages=find_packages(include=["gridauto", "gridauto.*"]),
    install_requires=[
        "pyyaml>=5.4",
        "jsonschema>=4.0.0",
    ],
    extras_require={
        "browser": ["playwright>=1.40"],
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    package_data={
        "gridauto": ["schemas/*.json"],
    },
    entry_points={
        "console_scripts": [
            "gridauto=gridauto.cli:main",
        ],
    },
)
