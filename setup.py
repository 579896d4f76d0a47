from setuptools import setup, find_packages

setup(
    name="pulse_estimator",
    version="0.1.0",
    description="Real-time rPPG heart-rate spectral estimator",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "scipy>=1.10",
    ],
    extras_require={
        "dev": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "pulse-estimator=main:main",
        ]
    },
)
