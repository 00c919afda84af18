from .composed import ComposedContract, ContractConfig, Outcome

__all__ = ["ComposedContract", "ContractConfig", "Outcome"]
