"""Install, configure and launch Ethereum and Starknet node clients."""

__version__ = "0.1.0"