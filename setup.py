from setuptools import setup, find_packages

# --- Main setup configuration ---

setup(
    name="mass_decomp",
    version="0.1.0",
    description="Decomposition of real and integer masses over an alphabet of weighted building blocks",
    # find_packages will discover the 'mass_decomp' package in 'src'
    packages=find_packages(where="src"),
    # Tells setuptools that packages are in 'src'
    package_dir={"": "src"},
    # itertools.batched
    python_requires=">=3.12",
    install_requires=[
        "numpy",
        "polars",
        "joblib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    zip_safe=False,
)
