"""
Application type catalog.

Each mass-tort application type lists the dynamic fields the intake form
collects for it. The keys are stored verbatim in a lead's fields list; the
lead engine does not validate against this table.
"""
from typing import Dict, List, Optional

FIELD_TYPES = ("text", "date", "radio", "checkbox")

# (key, label, type)
_CATALOG = {
    "CA Wildfire": [
        ("city", "City", "text"),
        ("state", "State", "text"),
        ("zip", "ZIP Code", "text"),
        ("dateOfIncident", "Date of Incident", "date"),
        ("descriptionOfIncident", "Description of Incident", "text"),
        ("wildfireName", "Wildfire Name", "text"),
        ("homeownerOrRenter", "Homeowner or Renter?", "radio"),
        ("maritalStatus", "Marital Status", "text"),
        ("alreadySignedAttorney", "Already signed with an attorney?", "radio"),
    ],
    "Hair Relaxer": [
        ("attorney", "Attorney retained?", "radio"),
        ("brandUsed", "Brand of Hair Relaxer Used", "text"),
        ("startDate", "Hair Relaxer Used Start Date", "date"),
        ("stopDate", "Hair Relaxer Used Stop Date", "date"),
        ("usageFrequency", "How often used (≥ 3×/yr for > 1 yr)", "text"),
        ("injuryType", "Type of Injury", "text"),
        ("diagnosisDate", "Diagnosis Date", "date"),
        ("healthcareFacility", "Healthcare Provider / Facility", "text"),
        ("breastCancerOrLynch", "Diagnosed with Breast Cancer / Lynch ?", "radio"),
    ],
    "Depo Provera": [
        ("yearUsed", "Year brand drug first used", "text"),
        ("usageDuration", "Total years Depo-Provera used", "text"),
        ("shotFrequency", "How often did you take a shot?", "text"),
        ("illness", "Illness diagnosed with", "text"),
        ("symptoms", "Symptoms", "text"),
        ("diagnosingDoctor", "Doctor who diagnosed you", "text"),
    ],
    "Ride Share": [
        ("incidentDate", "Date of Incident", "date"),
        ("role", "Role (Driver / Passenger)", "text"),
        ("company", "Rideshare Company", "text"),
        ("physicallyAssaulted", "Physically / sexually assaulted?", "radio"),
        ("proofOfRide", "Proof of ride when assaulted?", "radio"),
        ("reportDetails", "Report filed (police / company / etc.)", "text"),
        ("attorney", "Attorney retained for this matter?", "radio"),
    ],
    "Roundup": [
        ("roundupType", "Type of Roundup used (concentrate / pre-mix)", "text"),
        ("useDuration", "Total years Roundup used (› 1 yr)", "text"),
        ("useStart", "Use started (MM/YYYY)", "text"),
        ("nhlDiagnosed", "Diagnosed with Non-Hodgkin’s Lymphoma?", "radio"),
        ("nhlDiagnosisDate", "Date of NHL diagnosis", "date"),
        ("treatedForNHL", "Received treatment for NHL?", "radio"),
        ("treatmentType", "Treatment received (Chemo / Radiation / Both)", "text"),
        ("hospitalName", "Hospital Name", "text"),
        ("hospitalAddress", "Hospital Address", "text"),
        ("doctorName", "Doctor Name", "text"),
        ("doctorDesignation", "Doctor Designation", "text"),
    ],
    "PFAS": [
        ("diagnosis", "Diagnosis (Kidney / Testicular / etc.)", "text"),
        ("dateDiagnosed", "Date Diagnosed", "date"),
        ("symptomsStage", "Symptoms / Stage", "text"),
        ("treatment", "Treatment received", "text"),
        ("prior1970", "Only exposed prior to 1970?", "radio"),
        ("attorney", "Currently have an attorney?", "radio"),
    ],
    "NEC": [
        ("qualifyingInjury", "Qualifying Injury", "text"),
        ("childName", "Child Name", "text"),
        ("childDOB", "Child DOB", "date"),
        ("diagnoseDate", "NEC Diagnose Date", "date"),
        ("weeksAtBirth", "Weeks of pregnancy when gave birth", "text"),
        ("cowMilkFormula", "Infant given cow-milk formula/fortifier?", "radio"),
        ("attorney", "Attorney retained?", "radio"),
    ],
    "Lung Cancer": [
        ("asbestosExposure", "Diagnosed lung cancer w/ asbestos exposure?", "radio"),
        ("whoDiagnosed", "Who diagnosed you?", "text"),
        ("occupation", "Occupation / Trade (dropdown)", "text"),
        ("company", "Company worked for", "text"),
        ("employmentProof", "Can prove employment in that field?", "radio"),
    ],
    "Paraquat": [
        ("exposureDate", "Date of exposure to Paraquat", "date"),
        ("companyName", "Company you worked for", "text"),
        ("exposuresPerYear", "Times per year exposed (≥ 8 lifetime)", "text"),
        ("geneticTesting", "Had genetic testing for Parkinson’s?", "radio"),
        ("parkinsonDxDate", "Parkinson’s Date of Diagnosis", "date"),
        ("symptoms", "Symptoms of Illness", "text"),
        ("doctorName", "Diagnosing Doctor Name", "text"),
        ("hospital", "Hospital Name and Address", "text"),
    ],
    "LDS": [
        ("drugPrescribed", "Drug Prescribed", "text"),
        ("treatedFor", "Condition Treated", "text"),
        ("reactionType", "Reaction Type", "text"),
        ("reactionDate", "Date of Reaction", "date"),
        ("hospitalization", "Hospitalization Duration", "text"),
        ("stillOnMedication", "Still on Medication?", "radio"),
    ],
    "Talcum": [
        ("usageYears", "Start – End Year of Talcum Usage", "text"),
        ("diagnosis", "Diagnosis", "text"),
        ("yearDx", "Year of Dx", "text"),
        ("treatment", "Treatment", "text"),
        ("attorney", "Attorney retained?", "radio"),
        ("hospitalName", "Hospital Name", "text"),
    ],
}

APPLICATION_TYPES: Dict[str, List[Dict[str, str]]] = {
    name: [{"key": key, "label": label, "type": kind} for key, label, kind in fields]
    for name, fields in _CATALOG.items()
}


def list_application_types() -> List[str]:
    return list(APPLICATION_TYPES.keys())


def get_fields(application_type: Optional[str]) -> List[Dict[str, str]]:
    """Field definitions for an application type; unknown types have none."""
    return [dict(field) for field in APPLICATION_TYPES.get(application_type or "", [])]
