from sqlalchemy import Column, Integer, String, DateTime, Text, Index

from ..config import settings
from .database import Base


class ChatHistory(Base):
    """One chatbot execution, written by the n8n workflows"""
    __tablename__ = settings.CHAT_HISTORY_TABLE

    id = Column(Integer, primary_key=True, index=True)
    execution_id = Column(String(64), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    nohp = Column(String(32), nullable=True, index=True)
    chat = Column(Text, nullable=True)
    chat_response = Column(Text, nullable=True)
    current_menu = Column(String(100), nullable=True)
    chat_name = Column(String(255), nullable=True)
    workflow_id = Column(String(64), nullable=True)
    workflow_name = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<ChatHistory(execution_id='{self.execution_id}', nohp='{self.nohp}')>"

    def to_dict(self) -> dict:
        return {
            "execution_id": self.execution_id,
            "started_at": self.started_at,
            "nohp": self.nohp,
            "chat": self.chat,
            "chat_response": self.chat_response,
            "current_menu": self.current_menu,
            "chat_name": self.chat_name,
            "workflow_id": self.workflow_id,
            "workflow_name": self.workflow_name,
        }


class EmployeeRecord(Base):
    """SAP HR employee snapshot synced into the reporting database"""
    __tablename__ = settings.EMPLOYEE_TABLE

    id = Column(Integer, primary_key=True, index=True)
    hp = Column(String(32), nullable=False)
    user_name = Column(String(100), nullable=True)
    full_name = Column(String(255), nullable=True)
    company_code = Column(String(20), nullable=True)
    company_code_desc = Column(String(255), nullable=True)
    position_name = Column(String(255), nullable=True)
    position_id = Column(String(50), nullable=True)
    personal_area = Column(String(100), nullable=True)
    personal_subarea = Column(String(100), nullable=True)
    position_level_id = Column(String(50), nullable=True)
    employee_group = Column(String(50), nullable=True)
    environment_id = Column(String(10), nullable=False)

    __table_args__ = (
        Index("ix_employee_hp_environment", "hp", "environment_id"),
    )

    def __repr__(self):
        return f"<EmployeeRecord(hp='{self.hp}', company_code='{self.company_code}')>"

    def to_sap_record(self) -> dict:
        """Same shape as a record from the live SAP service"""
        return {
            "Hp": self.hp,
            "UserName": self.user_name,
            "FullName": self.full_name,
            "CompanyCode": self.company_code,
            "CompanyCodeDesc": self.company_code_desc,
            "PositionName": self.position_name,
            "PositionId": self.position_id,
            "PersonalArea": self.personal_area,
            "PersonalSubarea": self.personal_subarea,
            "PositionLevelId": self.position_level_id,
            "EmployeeGroup": self.employee_group,
        }
