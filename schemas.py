from __future__ import annotations
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict


# --------- Common ---------
class ErrorDetail(BaseModel):
    field: Optional[str] = None
    issue: Optional[str] = None


class ErrorEnvelope(BaseModel):
    code: str = Field(default="SERVER_ERROR")
    message: str
    details: Optional[List[ErrorDetail]] = None


class ErrorResponse(BaseModel):
    error: ErrorEnvelope


# --------- Inputs ---------
class BirthPayload(BaseModel):
    """Birth details used across requests."""
    model_config = ConfigDict(json_schema_extra={
        "examples": [
            {
                "name": "Maya",
                "dateOfBirth": "1990-01-01",
                "timeOfBirth": "12:00",
                "timeZone": "America/New_York",
            }
        ]
    })

    name: Optional[str] = Field(default=None, description="Display name.", examples=["Maya"])
    dateOfBirth: str = Field(..., description="Birth date in ISO format YYYY-MM-DD.", examples=["1990-01-01"])
    timeOfBirth: Optional[str] = Field(default="", description="Birth time HH:MM or HH:MM:SS; blank uses the default birth time.", examples=["12:00"])
    timeZone: Optional[str] = Field(default=None, description="IANA timezone of the birth place; blank uses the default zone.", examples=["America/New_York"])


class TransitIn(BaseModel):
    birth: BirthPayload
    at: Optional[str] = Field(default=None, description="ISO datetime of the transit moment (UTC if naive); defaults to now.", examples=["2026-03-01T12:00:00Z"])


class SynastryPairIn(BaseModel):
    """Two people to compare."""
    person1: BirthPayload = Field(..., description="First person")
    person2: BirthPayload = Field(..., description="Second person")


class TriangulationIn(BaseModel):
    personA: BirthPayload
    personB: BirthPayload
    personC: BirthPayload = Field(..., description="The third person whose role in the A/B pair is assessed")
    pairFriction: Optional[float] = Field(default=None, ge=0, le=100, description="Friction of the A/B pair; computed when omitted.")


class FamilyMemberIn(BaseModel):
    name: str = Field(..., min_length=1, examples=["Rose"])
    relationship: str = Field(default="Family Member", examples=["Mother"])
    birthDate: str = Field(..., examples=["1962-04-09"])
    birthTime: Optional[str] = Field(default="", examples=["07:45"])
    generation: Optional[int] = Field(default=None, description="0 = self, -1 = parents, -2 = grandparents, 1 = children; derived from relationship when omitted.")


class FamilyMemberUpdate(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    birthDate: Optional[str] = None
    birthTime: Optional[str] = None
    generation: Optional[int] = None


class ParseDocumentIn(BaseModel):
    text: str = Field(..., description="Free text containing names, birth dates and optional times.")
    importMembers: bool = Field(default=False, description="Add every parsed person to the family map.")


class ResolverProfile(BaseModel):
    birth_date: Optional[str] = None
    birth_time: Optional[str] = None
    timeZone: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class FamilyHistory(BaseModel):
    parent_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ConflictContext(BaseModel):
    conflict: str = ""


class ResolveIn(BaseModel):
    model_config = ConfigDict(json_schema_extra={
        "examples": [
            {
                "profile": {"birth_date": "1990-01-01", "birth_time": "12:00", "tags": ["needs_solitude", "projector"]},
                "family": {"parent_id": "parent1", "tags": ["critical", "triangle"]},
                "context": {"conflict": "My dad is criticizing my job."},
            }
        ]
    })

    profile: ResolverProfile
    family: FamilyHistory = Field(default_factory=FamilyHistory)
    context: ConflictContext = Field(default_factory=ConflictContext)


class TextIn(BaseModel):
    text: str = Field(..., examples=["You always do this. I'm done."])


# --------- Blueprint ---------
class Activation(BaseModel):
    planet: str
    longitude: float
    gate: int
    line: int


class ChannelRow(BaseModel):
    key: str
    gates: List[int]
    name: str
    centers: List[str]


class AstroPosition(BaseModel):
    sign: str
    degree: float
    longitude: float


class PersonalitySide(BaseModel):
    gates: List[int]
    activations: List[Activation]
    centers: Dict[str, bool]


class DesignSide(BaseModel):
    gates: List[int]
    activations: List[Activation]


class BlueprintData(BaseModel):
    type: str
    strategy: str
    authority: str
    profile: str
    definition: str
    notSelfTheme: str
    centers: Dict[str, bool]
    channels: List[ChannelRow]
    personality: PersonalitySide
    design: DesignSide
    astrology: Dict[str, AstroPosition]
    birthDate: str
    birthTime: str
    timeZone: str
    designDate: str


class BlueprintOut(BaseModel):
    data: BlueprintData


class TransitAspect(BaseModel):
    transitPlanet: str
    aspect: str
    natalPlanet: str
    orb: float
    nature: str


class WeatherSummary(BaseModel):
    hard: int
    soft: int
    neutral: int
    headline: str


class TransitData(BaseModel):
    timestamp: str
    aspects: List[TransitAspect]
    activatedGates: List[int]
    completedChannels: List[ChannelRow]
    weatherSummary: WeatherSummary


class TransitOut(BaseModel):
    data: TransitData


# --------- Synastry ---------
class FrictionAspect(BaseModel):
    pair: str
    aspect: str
    nature: str
    distance: str


class FrictionData(BaseModel):
    score: int
    type: str
    description: str
    aspects: List[FrictionAspect]
    conflicts: int
    flow: int
    summary: str


class FrictionOut(BaseModel):
    data: FrictionData


class DynamicRow(BaseModel):
    type: str = Field(..., description="HEALTHY | FUSION | CONFLICT")
    source: str
    description: str


class ConditioningRow(BaseModel):
    center: str
    direction: str
    insight: str


class SynastryData(BaseModel):
    compatibilityScore: int = Field(..., ge=0, le=100)
    dynamics: List[DynamicRow]
    channels: Dict[str, List[Dict[str, Any]]]
    conditioning: List[ConditioningRow]
    friction: FrictionData


class SynastryOut(BaseModel):
    data: SynastryData


class OrbitPerson(BaseModel):
    name: str
    type: str
    strategy: str
    authority: str


class OrbitData(BaseModel):
    personA: OrbitPerson
    personB: OrbitPerson
    friction: FrictionData
    conditioning: List[ConditioningRow]
    summary: str


class OrbitOut(BaseModel):
    data: OrbitData


class ConflictAxis(BaseModel):
    aspectName: str
    distance: float
    nature: str
    description: str


class TriangulationResult(BaseModel):
    detected: bool
    type: str = Field(..., description="STABILIZER | SCAPEGOAT | NONE")
    role: str
    resonanceWithA: float
    resonanceWithB: float
    conflictAxis: Optional[ConflictAxis] = None
    impact: str
    risk: str
    recommendation: str


class NamedType(BaseModel):
    name: str
    type: str


class TriangulationData(BaseModel):
    personA: NamedType
    personB: NamedType
    personC: NamedType
    pairFriction: float
    triangulation: TriangulationResult


class TriangulationOut(BaseModel):
    data: TriangulationData


# --------- Family ---------
class FamilyMember(BaseModel):
    id: str
    name: str
    relationship: str
    birthDate: str
    birthTime: str
    generation: int
    blueprint: Optional[Dict[str, Any]] = None
    addedAt: str


class FamilyMemberOut(BaseModel):
    data: FamilyMember


class FamilyMembersOut(BaseModel):
    data: List[FamilyMember]


class FamilyDynamicRow(BaseModel):
    memberA: str
    memberB: str
    nameA: str
    nameB: str
    compatibilityScore: int
    dynamics: List[DynamicRow]


class FamilyGroupData(BaseModel):
    members: List[FamilyMember]
    dynamics: List[FamilyDynamicRow]
    generationMap: Dict[str, List[FamilyMember]]
    lastUpdated: str


class FamilyDynamicsOut(BaseModel):
    data: FamilyGroupData


class ActivityEntry(BaseModel):
    id: str
    icon: str
    text: str
    time: str
    accent: Optional[str] = None
    timestamp: int


class ActivityOut(BaseModel):
    data: List[ActivityEntry]


class ParsedPersonRow(BaseModel):
    name: str
    birthDate: str
    birthTime: str
    relationship: str


class ParseDocumentData(BaseModel):
    persons: List[ParsedPersonRow]
    imported: List[FamilyMember] = Field(default_factory=list)


class ParseDocumentOut(BaseModel):
    data: ParseDocumentData


# --------- Resolver / signal / echo ---------
class ResolutionData(BaseModel):
    root_cause: str
    resolution_script: str
    analysis_log: Dict[str, str]


class ResolveOut(BaseModel):
    data: ResolutionData


class SignalData(BaseModel):
    entropy: int
    integration: int
    expansion: int
    spectrum: str
    density: str
    flag: str
    body: str
    preparation: str
    markerCount: int
    topMarkers: List[str]


class SignalOut(BaseModel):
    data: SignalData


class SedaData(BaseModel):
    score: int
    status: str
    flags: Dict[str, int]
    toneDirective: str


class SedaOut(BaseModel):
    data: SedaData


class EchoEntry(BaseModel):
    id: str
    date: str
    text: str
    spectrum: Optional[SedaData] = None


class EchoEntryOut(BaseModel):
    data: EchoEntry


class EchoEntriesOut(BaseModel):
    data: List[EchoEntry]


class EchoMatch(BaseModel):
    entryId: Optional[str] = None
    date: Optional[str] = None
    matchedMarkers: List[str]
    excerpt: str


class EchoLoop(BaseModel):
    theme: str
    frequency: int
    intensity: float
    systemDrag: int
    matches: List[EchoMatch]
    description: str
    adjustment: str


class EchoReportData(BaseModel):
    totalEntries: int
    windowDays: int
    loops: List[EchoLoop]
    dominantLoop: Optional[EchoLoop] = None
    overallDrag: int
    status: str
    insight: str


class EchoReportOut(BaseModel):
    data: EchoReportData
