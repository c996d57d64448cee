"""Tables served by the deployment.

Used to sanity-check every request before it reaches a storage engine.
"""

from __future__ import annotations

from typing import Iterable, List

from .exceptions import UnknownTableError
from .models import TableSchema

CASES = TableSchema(
    name="Cases",
    key_columns=("CaseID",),
    mandatory_columns=("CaseID", "Owner"),
    columns=("CaseID", "Owner"),
)

INCIDENT = TableSchema(
    name="Incident",
    key_columns=("IncidentID",),
    mandatory_columns=(
        "IncidentID",
        "Owner",
        "Time",
        "Location",
        "Description",
        "IncidentLevel",
        "SceneDescription",
    ),
    columns=(
        "IncidentID",
        "Owner",
        "Time",
        "Location",
        "Description",
        "IncidentLevel",
        "SceneDescription",
        "ArrestMade",
        "RaceOfVictim",
        "GenderOfVictim",
    ),
)

OFFICER = TableSchema(
    name="Officer",
    key_columns=("OfficerID",),
    mandatory_columns=("OfficerID", "BadgeID"),
    columns=("OfficerID", "BadgeID"),
)

ORGANIZATIONS = TableSchema(
    name="Organizations",
    key_columns=("OrganizationID",),
    mandatory_columns=("OrganizationID", "OrganizationName", "ContactInfo"),
    columns=("OrganizationID", "OrganizationName", "ContactInfo"),
)

# "User" is a reserved word in SQL
USER = TableSchema(
    name="Customer",
    key_columns=("UserID",),
    mandatory_columns=(
        "UserID",
        "DOB",
        "ContactName",
        "ContactPhone",
        "ContactEmail",
        "Location",
    ),
    columns=(
        "UserID",
        "DOB",
        "ContactName",
        "ContactPhone",
        "ContactEmail",
        "Location",
    ),
)

CASES_TO_INCIDENTS = TableSchema(
    name="CasesToIncidents",
    key_columns=("CaseID", "IncidentID"),
    mandatory_columns=("CaseID", "IncidentID"),
    columns=("CaseID", "IncidentID"),
)

INCIDENTS_TO_OFFICERS = TableSchema(
    name="CasesToOfficers",
    key_columns=("IncidentID", "OfficerID"),
    mandatory_columns=("IncidentID", "OfficerID"),
    columns=("IncidentID", "OfficerID"),
)

ORGANIZATIONS_TO_CASES = TableSchema(
    name="OrganizationsToCases",
    key_columns=("OrganizationID", "CaseID"),
    mandatory_columns=("OrganizationID", "CaseID"),
    columns=("OrganizationID", "CaseID"),
)

SUPPORTED_TABLES: List[TableSchema] = [
    ORGANIZATIONS,
    ORGANIZATIONS_TO_CASES,
    INCIDENT,
    INCIDENTS_TO_OFFICERS,
    CASES,
    CASES_TO_INCIDENTS,
    OFFICER,
    USER,
]


def find_table(name: str, tables: Iterable[TableSchema] = SUPPORTED_TABLES) -> TableSchema:
    """Look up a table by name, ignoring case."""
    for table in tables:
        if table.name.lower() == name.lower():
            return table
    raise UnknownTableError(name)
