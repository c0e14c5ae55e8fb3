from models.procured_meds import ProcuredMed
from models.iar import Iar

__all__ = ['Iar', 'ProcuredMed']
