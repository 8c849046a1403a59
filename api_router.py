from __future__ import annotations
import datetime as dt
import logging
from typing import Optional, Dict, Any, Annotated, List

from fastapi import APIRouter, Depends, Header, HTTPException, Body, Query

from schemas import (
    BirthPayload,
    TransitIn,
    SynastryPairIn,
    TriangulationIn,
    FamilyMemberIn, FamilyMemberUpdate,
    ParseDocumentIn,
    ResolveIn,
    TextIn,
    BlueprintOut, BlueprintData,
    TransitOut, TransitData,
    SynastryOut, SynastryData,
    FrictionOut, FrictionData,
    OrbitOut, OrbitData,
    TriangulationOut, TriangulationData,
    FamilyMember, FamilyMemberOut, FamilyMembersOut,
    FamilyDynamicsOut, FamilyGroupData,
    ActivityOut, ActivityEntry,
    ParseDocumentOut, ParseDocumentData, ParsedPersonRow,
    ResolveOut, ResolutionData,
    SignalOut, SignalData,
    SedaOut, SedaData,
    EchoEntryOut, EchoEntriesOut, EchoEntry, EchoReportOut, EchoReportData,
)

from services.blueprint_services import process_birth_data, calculate_transits
from services.synastry_services import calculate_synastry, calculate_friction, generate_orbit_report
from services.triangulation_services import generate_triangulation_report
from services.family_services import FamilyService, generation_for
from services.document_parser import parse_document_text
from services.resolver_services import generate_resolution
from services.signal_services import analyze_signal, calculate_seda
from services.echo_services import EchoJournal, analyze_echo
from utils.local_store import LocalStore
from settings import ECHO_WINDOW_DAYS

logger = logging.getLogger(__name__)


def _require_bearer(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> None:
    # Presence only; the token itself is not validated.
    if not authorization or not str(authorization).strip():
        raise HTTPException(status_code=401, detail="Missing Authorization header")


router = APIRouter(prefix="/api", dependencies=[Depends(_require_bearer)])


# --------------------- Dependencies ---------------------
def get_store() -> LocalStore:
    return LocalStore()


def get_family_service(store: LocalStore = Depends(get_store)) -> FamilyService:
    return FamilyService(store)


def get_echo_journal(store: LocalStore = Depends(get_store)) -> EchoJournal:
    return EchoJournal(store)


# --------------------- Helpers ---------------------
_BIRTH_EXAMPLE = {"name": "Maya", "dateOfBirth": "1990-01-01", "timeOfBirth": "12:00", "timeZone": "America/New_York"}
_PARTNER_EXAMPLE = {"name": "Leo", "dateOfBirth": "1988-06-15", "timeOfBirth": "08:30", "timeZone": "America/Chicago"}


def _person(p: BirthPayload) -> Dict[str, Any]:
    return {"name": p.name, "date": p.dateOfBirth, "time": p.timeOfBirth, "timeZone": p.timeZone}


def _blueprint(p: BirthPayload) -> Dict[str, Any]:
    try:
        return process_birth_data(p.dateOfBirth, p.timeOfBirth, p.timeZone)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))


def _parse_at(value: Optional[str]) -> Optional[dt.datetime]:
    if not value:
        return None
    try:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"'at' must be an ISO datetime, got {value!r}")


# --------------- Blueprint -----------------
@router.post("/blueprint", response_model=BlueprintOut, tags=["Blueprint"], summary="Derive a blueprint from birth data")
def build_blueprint(
    payload: BirthPayload = Body(..., openapi_examples={"sample": {"summary": "Sample", "value": _BIRTH_EXAMPLE}}),
) -> BlueprintOut:
    return BlueprintOut(data=BlueprintData(**_blueprint(payload)))


@router.post("/blueprint/transits", response_model=TransitOut, tags=["Blueprint"], summary="Current transits against a natal blueprint")
def blueprint_transits(
    req: TransitIn = Body(
        ...,
        openapi_examples={"sample": {"summary": "Sample", "value": {"birth": _BIRTH_EXAMPLE, "at": "2026-03-01T12:00:00Z"}}},
    ),
) -> TransitOut:
    at = _parse_at(req.at)
    report = calculate_transits(_blueprint(req.birth), at)
    return TransitOut(data=TransitData(**report))


# --------------- Synastry -----------------
_PAIR_EXAMPLES = {"sample": {"summary": "Sample", "value": {"person1": _BIRTH_EXAMPLE, "person2": _PARTNER_EXAMPLE}}}


@router.post("/synastry", response_model=SynastryOut, tags=["Synastry"], summary="Compatibility score and dynamics for two people")
def synastry(req: SynastryPairIn = Body(..., openapi_examples=_PAIR_EXAMPLES)) -> SynastryOut:
    a, b = _blueprint(req.person1), _blueprint(req.person2)
    result = calculate_synastry(a, b, req.person1.name or "Person A", req.person2.name or "Person B")
    return SynastryOut(data=SynastryData(**result))


@router.post("/synastry/friction", response_model=FrictionOut, tags=["Synastry"], summary="Relational friction between two people")
def synastry_friction(req: SynastryPairIn = Body(..., openapi_examples=_PAIR_EXAMPLES)) -> FrictionOut:
    result = calculate_friction(_blueprint(req.person1), _blueprint(req.person2))
    return FrictionOut(data=FrictionData(**result))


@router.post("/synastry/orbit", response_model=OrbitOut, tags=["Synastry"], summary="Friction plus center conditioning report")
def synastry_orbit(req: SynastryPairIn = Body(..., openapi_examples=_PAIR_EXAMPLES)) -> OrbitOut:
    try:
        report = generate_orbit_report(_person(req.person1), _person(req.person2))
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    return OrbitOut(data=OrbitData(**report))


@router.post("/synastry/triangulation", response_model=TriangulationOut, tags=["Synastry"], summary="Role of a third person in a pair's friction")
def synastry_triangulation(
    req: TriangulationIn = Body(
        ...,
        openapi_examples={
            "sample": {
                "summary": "Sample",
                "value": {
                    "personA": _BIRTH_EXAMPLE,
                    "personB": _PARTNER_EXAMPLE,
                    "personC": {"name": "Ava", "dateOfBirth": "2015-09-02", "timeOfBirth": "", "timeZone": "America/New_York"},
                },
            }
        },
    ),
) -> TriangulationOut:
    pair_friction = req.pairFriction
    if pair_friction is None:
        pair_friction = float(calculate_friction(_blueprint(req.personA), _blueprint(req.personB))["score"])
    try:
        report = generate_triangulation_report(_person(req.personA), _person(req.personB), _person(req.personC), pair_friction)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    return TriangulationOut(data=TriangulationData(**report))


# --------------- Family -----------------
@router.get("/family/members", response_model=FamilyMembersOut, tags=["Family"], summary="List family members")
def list_family_members(svc: FamilyService = Depends(get_family_service)) -> FamilyMembersOut:
    return FamilyMembersOut(data=[FamilyMember(**m) for m in svc.load_members()])


@router.post("/family/members", response_model=FamilyMemberOut, status_code=201, tags=["Family"], summary="Add a family member")
def add_family_member(
    req: FamilyMemberIn = Body(
        ...,
        openapi_examples={
            "sample": {
                "summary": "Sample",
                "value": {"name": "Rose", "relationship": "Mother", "birthDate": "1962-04-09", "birthTime": "07:45"},
            }
        },
    ),
    svc: FamilyService = Depends(get_family_service),
) -> FamilyMemberOut:
    generation = req.generation if req.generation is not None else generation_for(req.relationship)
    member = svc.add_member(req.name, req.relationship, req.birthDate, req.birthTime or "", generation)
    return FamilyMemberOut(data=FamilyMember(**member))


@router.patch("/family/members/{member_id}", response_model=FamilyMemberOut, tags=["Family"], summary="Update a family member")
def update_family_member(
    member_id: str,
    req: FamilyMemberUpdate,
    svc: FamilyService = Depends(get_family_service),
) -> FamilyMemberOut:
    try:
        member = svc.update_member(member_id, req.model_dump(exclude_unset=True))
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Family member not found: {member_id}")
    return FamilyMemberOut(data=FamilyMember(**member))


@router.delete("/family/members/{member_id}", status_code=204, tags=["Family"], summary="Remove a family member")
def remove_family_member(member_id: str, svc: FamilyService = Depends(get_family_service)) -> None:
    try:
        svc.remove_member(member_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Family member not found: {member_id}")


@router.get("/family/dynamics", response_model=FamilyDynamicsOut, tags=["Family"], summary="Pairwise dynamics across the family")
def family_dynamics(svc: FamilyService = Depends(get_family_service)) -> FamilyDynamicsOut:
    group = svc.calculate_family_dynamics()
    group["generationMap"] = {str(k): v for k, v in sorted(group["generationMap"].items())}
    return FamilyDynamicsOut(data=FamilyGroupData(**group))


@router.get("/family/activity", response_model=ActivityOut, tags=["Family"], summary="Recent family activity, newest first")
def family_activity(svc: FamilyService = Depends(get_family_service)) -> ActivityOut:
    return ActivityOut(data=[ActivityEntry(**e) for e in svc.load_activity_log()])


@router.post("/family/parse-document", response_model=ParseDocumentOut, tags=["Family"], summary="Extract birth data from free text")
def family_parse_document(
    req: ParseDocumentIn = Body(
        ...,
        openapi_examples={
            "sample": {
                "summary": "Sample",
                "value": {
                    "text": "1. Rose - my mother, born March 4, 1962 at 7:45 am\n2. Tom (father) 11/23/1960",
                    "importMembers": False,
                },
            }
        },
    ),
    svc: FamilyService = Depends(get_family_service),
) -> ParseDocumentOut:
    persons = parse_document_text(req.text)
    imported: List[Dict[str, Any]] = svc.import_parsed_persons(persons) if req.importMembers else []
    return ParseDocumentOut(
        data=ParseDocumentData(
            persons=[ParsedPersonRow(**p) for p in persons],
            imported=[FamilyMember(**m) for m in imported],
        )
    )


# --------------- Resolver -----------------
@router.post("/resolve", response_model=ResolveOut, tags=["Resolver"], summary="Root cause and resolution script for a conflict")
async def resolve(req: ResolveIn) -> ResolveOut:
    result = await generate_resolution(req.profile.model_dump(), req.family.model_dump(), req.context.model_dump())
    return ResolveOut(data=ResolutionData(**result))


# --------------- Signal -----------------
@router.post("/signal", response_model=SignalOut, tags=["Signal"], summary="Scan a message for entropy, integration and expansion")
def signal(req: TextIn) -> SignalOut:
    return SignalOut(data=SignalData(**analyze_signal(req.text)))


@router.post("/seda", response_model=SedaOut, tags=["Signal"], summary="Stability risk score for a piece of text")
def seda(req: TextIn) -> SedaOut:
    return SedaOut(data=SedaData(**calculate_seda(req.text)))


# --------------- Echo -----------------
@router.get("/echo/entries", response_model=EchoEntriesOut, tags=["Echo"], summary="Journal entries, newest first")
def echo_entries(journal: EchoJournal = Depends(get_echo_journal)) -> EchoEntriesOut:
    return EchoEntriesOut(data=[EchoEntry(**e) for e in journal.load_entries()])


@router.post("/echo/entries", response_model=EchoEntryOut, status_code=201, tags=["Echo"], summary="Add a journal entry")
def add_echo_entry(req: TextIn, journal: EchoJournal = Depends(get_echo_journal)) -> EchoEntryOut:
    try:
        entry = journal.add_entry(req.text)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    return EchoEntryOut(data=EchoEntry(**entry))


@router.delete("/echo/entries/{entry_id}", status_code=204, tags=["Echo"], summary="Delete a journal entry")
def delete_echo_entry(entry_id: str, journal: EchoJournal = Depends(get_echo_journal)) -> None:
    try:
        journal.delete_entry(entry_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Journal entry not found: {entry_id}")


@router.get("/echo/report", response_model=EchoReportOut, tags=["Echo"], summary="Recurring not-self loops in the journal")
def echo_report(
    user_type: str = Query("Projector", description="Blueprint type of the journal's author"),
    window_days: int = Query(ECHO_WINDOW_DAYS, ge=1, le=365),
    journal: EchoJournal = Depends(get_echo_journal),
) -> EchoReportOut:
    report = analyze_echo(journal.load_entries(), user_type, window_days)
    return EchoReportOut(data=EchoReportData(**report))
