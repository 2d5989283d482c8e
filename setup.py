# setup.py
from setuptools import setup, find_packages

setup(
    name="ngram-load",
    version="0.1.0",
    description="Bulk-load n-gram corpora from Google Cloud Storage into BigQuery",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "google-cloud-bigquery>=3.0",
        "tqdm",
        "setproctitle",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "ngram-load=ngram_load.cli:main",
        ],
    },
)
