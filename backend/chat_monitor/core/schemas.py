from datetime import datetime, timezone
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .types import CompanyCode


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model that serializes with the camelCase keys the dashboard expects"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompanyCodeResult(CamelModel):
    """Outcome of resolving one phone number"""
    phone_number: str
    company_code: str
    company_name: str = ""
    success: bool
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    last_updated: datetime = Field(default_factory=utcnow)
    error: Optional[str] = None

    @model_validator(mode="after")
    def _failed_calls_are_errors(self) -> "CompanyCodeResult":
        if not self.success and self.company_code != CompanyCode.error.value:
            raise ValueError("a failed lookup must carry the ERROR company code")
        return self


class BatchSummary(CamelModel):
    total: int = 0
    successful: int = 0
    errors: int = 0
    unknown: int = 0


class BatchResult(CamelModel):
    """All results of one batch, one per input phone number, in no particular order"""
    results: List[CompanyCodeResult] = Field(default_factory=list)
    deadline_exceeded: bool = False
    abandoned: int = 0
    elapsed_ms: int = 0

    def __len__(self) -> int:
        return len(self.results)

    def by_phone(self) -> Dict[str, CompanyCodeResult]:
        return {result.phone_number: result for result in self.results}


class CompanyContactStats(CamelModel):
    company_code: str
    company_name: str
    unique_contacts: int
    phone_numbers: List[str] = Field(default_factory=list)
    last_contact: Optional[datetime] = None


# API payloads

class RefreshCompanyCodesRequest(CamelModel):
    phone_numbers: Optional[List[str]] = None


class CompanyCodeData(CamelModel):
    company_data: List[CompanyCodeResult]
    unique_company_codes: List[str]
    phone_numbers: List[str]
    stats: BatchSummary
    deadline_exceeded: bool = False


class CompanyCodeResponse(CamelModel):
    success: bool
    data: Optional[CompanyCodeData] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class CompanyContactsSummary(CamelModel):
    total_companies: int
    total_unique_contacts: int
    data_generated_at: datetime = Field(default_factory=utcnow)


class CompanyContactsResponse(CamelModel):
    success: bool
    data: List[CompanyContactStats] = Field(default_factory=list)
    summary: Optional[CompanyContactsSummary] = None
    error: Optional[str] = None


class TaggedChatRecord(CamelModel):
    execution_id: str
    started_at: Optional[datetime] = None
    contact: Optional[str] = None
    chat: Optional[str] = None
    chat_response: Optional[str] = None
    current_menu: Optional[str] = None
    workflow_id: Optional[str] = None
    workflow_name: Optional[str] = None
    company_code: str
    company_name: str = ""


class ChatHistoryResponse(CamelModel):
    success: bool
    data: List[TaggedChatRecord] = Field(default_factory=list)
    page: int = 1
    limit: int = 20
    deadline_exceeded: bool = False
    error: Optional[str] = None
