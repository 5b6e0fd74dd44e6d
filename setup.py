"""nftswap - Setup configuration"""

from setuptools import setup, find_packages

setup(
    name="nftswap",
    version="1.0.0",
    description="Order lifecycle for peer-to-peer ERC20/ERC721/ERC1155 swaps on the 0x v3 exchange",
    author="nftswap Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dotenv>=1.0.1",
        "web3>=6.18.0",
        "eth-account>=0.13.0",
        "eth-abi>=5.0.0",
        "eth-utils>=4.0.0",
        "pydantic>=2.6.1",
        "pydantic-settings>=2.1.0",
        "structlog>=24.1.0",
        "prometheus-client>=0.20.0",
        "tenacity>=8.2.3",
        "click>=8.1.7",
        "tabulate>=0.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "nftswap=nftswap.cli.main:cli",
        ],
    },
    python_requires=">=3.11",
)
