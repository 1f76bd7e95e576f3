from setuptools import setup, find_packages

setup(
    name="khaddar",
    version="1.0.0",
    packages=find_packages(include=["khaddar", "khaddar.*"]),
    install_requires=[
        "django>=4.0",
        "djangorestframework",
        "drf-spectacular",
        "python-decouple",
        "requests",
    ],
    python_requires=">=3.11",
)
