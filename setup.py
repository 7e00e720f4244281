from setuptools import setup, find_packages

setup(
    name="zkhole-sdk",
    version="0.1.0",
    description="Privacy SDK for anonymous transfers, HoleID, HoleMail and HoleSwap",
    author="zkHole Team",
    author_email="team@zkhole.dev",
    url="https://github.com/zkhole/zkhole-sdk-python",
    license="MIT",
    python_requires=">=3.11",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "cryptography>=40.0.0",
        "pycryptodome>=3.18.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "solders>=0.20.0",
        "sqlalchemy>=2.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-asyncio>=0.21.0",
            "hypothesis>=6.0.0",
        ],
        "dev": [
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
            "isort>=5.12.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
