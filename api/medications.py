"""
Medications API Router
Endpoints for medication records and supply
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.medication import (
    MedicationCreate,
    MedicationUpdate,
    SupplyUpdate,
    MedicationResponse,
    MedicationList,
)


router = APIRouter(prefix="/medications", tags=["medications"])


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    db: Session = Depends(get_db)
):
    """
    Add a medication and schedule its daily reminder

    - **scheduled_time**: only hour and minute are used for the reminder
    - **low_supply_threshold**: low-supply alert fires once supply is at or below it
    """
    medication_service = services.get_medication_service()

    return await medication_service.add_medication(
        name=medication_data.name,
        dosage=medication_data.dosage,
        scheduled_time=medication_data.scheduled_time,
        supply=medication_data.supply,
        low_supply_threshold=medication_data.low_supply_threshold,
        frequency=medication_data.frequency,
        instructions=medication_data.instructions,
        db=db
    )


@router.get("/", response_model=MedicationList)
async def list_medications(db: Session = Depends(get_db)):
    """List all medications"""
    medication_service = services.get_medication_service()

    medications = await medication_service.list_medications(db=db)
    return MedicationList(
        medications=[MedicationResponse.model_validate(m) for m in medications],
        total=len(medications),
        low_supply_count=sum(1 for m in medications if m.is_low_supply)
    )


@router.get("/low-supply", response_model=MedicationList)
async def list_low_supply_medications(db: Session = Depends(get_db)):
    """Medications at or below their low-supply threshold"""
    medication_service = services.get_medication_service()

    medications = await medication_service.get_low_supply_medications(db=db)
    return MedicationList(
        medications=[MedicationResponse.model_validate(m) for m in medications],
        total=len(medications),
        low_supply_count=len(medications)
    )


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(medication_id: int, db: Session = Depends(get_db)):
    """Get a medication by ID"""
    medication_service = services.get_medication_service()

    medication = await medication_service.get_medication(medication_id, db=db)
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
    return medication


@router.patch("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: int,
    updates: MedicationUpdate,
    db: Session = Depends(get_db)
):
    """Update a medication; the reminder is replaced if its time or text changed"""
    medication_service = services.get_medication_service()

    medication = await medication_service.update_medication(
        medication_id,
        updates.model_dump(exclude_unset=True),
        db=db
    )
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
    return medication


@router.put("/{medication_id}/supply", response_model=MedicationResponse)
async def update_supply(
    medication_id: int,
    supply_data: SupplyUpdate,
    db: Session = Depends(get_db)
):
    """Set remaining supply"""
    medication_service = services.get_medication_service()

    medication = await medication_service.update_supply(medication_id, supply_data.supply, db=db)
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
    return medication


@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(medication_id: int, db: Session = Depends(get_db)):
    """Delete a medication and cancel its reminders"""
    medication_service = services.get_medication_service()

    deleted = await medication_service.delete_medication(medication_id, db=db)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
