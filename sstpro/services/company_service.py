# sstpro/services/company_service.py
import re
from typing import Optional, Dict, Any, List

from ..models import Company, is_uuid
from ..repositories.companies import CompanyRepository


def _normalize_cnpj(value: Optional[str]) -> str:
    """
    Formata CNPJ com 14 dígitos como 00.000.000/0000-00.
    Qualquer outra coisa volta só com espaços aparados.
    """
    s = (value or "").strip()
    digits = re.sub(r"\D", "", s)
    if len(digits) != 14:
        return s
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


class CompanyService:
    def __init__(self, repo=None) -> None:
        self.repo = repo or CompanyRepository()

    def list_all(self, q: str = "") -> List[Company]:
        return [Company.from_row(r) for r in self.repo.list(q)]

    def by_id(self, cid: str) -> Optional[Company]:
        row = self.repo.by_id(cid) if is_uuid(cid) else None
        return Company.from_row(row) if row else None

    @staticmethod
    def _clean(payload: Dict[str, Any]) -> Dict[str, Any]:
        data = {k: (payload.get(k) or "").strip() for k in
                ("name", "cnpj", "address", "contact_name", "phone")}
        if not data["name"]:
            raise ValueError("Nome da empresa é obrigatório.")
        data["cnpj"] = _normalize_cnpj(data["cnpj"])
        return data

    def create(self, payload: Dict[str, Any]) -> str:
        return self.repo.create(self._clean(payload))

    def update(self, cid: str, payload: Dict[str, Any]) -> bool:
        if not is_uuid(cid):
            return False
        return self.repo.update(cid, self._clean(payload))
