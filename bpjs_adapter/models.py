"""Shapes exchanged with the BPJS VClaim gateway.

Python attribute names are snake_case; aliases carry the gateway's own field
names so ``model_dump(by_alias=True)`` yields the wire payload.
"""
from pydantic import BaseModel, Field


class GatewayModel(BaseModel):
    model_config = {
        "populate_by_name": True
    }


# Eligibility ---------------------------------------------------------------

class CodedValue(GatewayModel):
    code: str | None = Field(None, alias="kode")
    description: str = Field("", alias="keterangan")

class Provider(GatewayModel):
    code: str = Field("", alias="kdProvider")
    name: str = Field("", alias="nmProvider")

class Age(GatewayModel):
    at_service: str = Field("", alias="umurSaatPelayanan")
    current: str = Field("", alias="umurSekarang")

class MedicalRecordInfo(GatewayModel):
    number: str | None = Field(None, alias="noMR")
    phone: str | None = Field(None, alias="noTelepon")

class CoordinationOfBenefits(GatewayModel):
    insurer_name: str | None = Field(None, alias="nmAsuransi")
    policy_number: str | None = Field(None, alias="noAsuransi")
    start_date: str | None = Field(None, alias="tglTMT")
    end_date: str | None = Field(None, alias="tglTAT")

class ParticipantInfo(GatewayModel):
    dinsos: str | None = None
    sktm_number: str | None = Field(None, alias="noSKTM")
    prolanis_prb: str | None = Field(None, alias="prolanisPRB")

class Participant(GatewayModel):
    """Participant detail found under ``response.peserta``."""
    name: str = Field(alias="nama")
    nik: str = ""
    card_number: str = Field(alias="noKartu")
    date_of_birth: str = Field("", alias="tglLahir")
    sex: str = ""
    status: CodedValue = Field(default_factory=CodedValue, alias="statusPeserta")
    participant_type: CodedValue | None = Field(None, alias="jenisPeserta")
    class_entitlement: CodedValue | None = Field(None, alias="hakKelas")
    primary_care: Provider = Field(default_factory=Provider, alias="provUmum")
    age: Age = Field(default_factory=Age, alias="umur")
    coverage_start: str = Field("", alias="tglTMT")
    coverage_end: str = Field("", alias="tglTAT")
    card_printed: str | None = Field(None, alias="tglCetakKartu")
    pisa: str | None = None
    medical_record: MedicalRecordInfo | None = Field(None, alias="mr")
    cob: CoordinationOfBenefits | None = None
    information: ParticipantInfo | None = Field(None, alias="informasi")

class EligibilityResult(GatewayModel):
    eligible: bool = True
    participant: Participant = Field(alias="peserta")


# SEP issuance --------------------------------------------------------------

FLAG = r"^[01]$"

class Referral(GatewayModel):
    source: str = Field(alias="asalRujukan", pattern=r"^[12]$")  # 1 = primary care, 2 = hospital
    date: str = Field(alias="tglRujukan")
    number: str = Field(alias="noRujukan")
    facility: str = Field(alias="ppkRujukan")

class Polyclinic(GatewayModel):
    destination: str = Field(alias="tujuan")
    executive: str = Field(alias="eksekutif", pattern=FLAG)

class CobFlag(GatewayModel):
    cob: str = Field(pattern=FLAG)

class CataractFlag(GatewayModel):
    cataract: str = Field(alias="katarak", pattern=FLAG)

class AccidentLocation(GatewayModel):
    province: str = Field("", alias="kdPropinsi")
    regency: str = Field("", alias="kdKabupaten")
    district: str = Field("", alias="kdKecamatan")

class Supplement(GatewayModel):
    supplement: str = Field("0", alias="suplesi", pattern=FLAG)
    supplement_sep: str = Field("", alias="noSepSuplesi")
    location: AccidentLocation = Field(default_factory=AccidentLocation, alias="lokasiLaka")

class Guarantor(GatewayModel):
    incident_date: str = Field("", alias="tglKejadian")
    description: str = Field("", alias="keterangan")
    supplement: Supplement = Field(default_factory=Supplement, alias="suplesi")

class Guarantee(GatewayModel):
    # 0 = none, 1 = traffic accident, 2 = work accident, 3 = both
    traffic_accident: str = Field(alias="lakaLantas", pattern=r"^[0-3]$")
    police_report_number: str = Field("", alias="noLP")
    guarantor: Guarantor = Field(default_factory=Guarantor, alias="penjamin")

class ControlLetter(GatewayModel):
    number: str = Field("", alias="noSurat")
    physician: str = Field("", alias="kodeDPJP")

class SEPRequest(GatewayModel):
    card_number: str = Field(alias="noKartu")
    sep_date: str = Field(alias="tglSep")
    service_facility: str = Field(alias="ppkPelayanan")
    service_type: str = Field(alias="jnsPelayanan", pattern=r"^[12]$")  # 1 = inpatient, 2 = outpatient
    ward_class: str = Field(alias="klsRawat")
    medical_record_number: str = Field(alias="noMR")
    referral: Referral = Field(alias="rujukan")
    notes: str = Field(alias="catatan")
    initial_diagnosis: str = Field(alias="diagAwal")
    polyclinic: Polyclinic = Field(alias="poli")
    cob: CobFlag
    cataract: CataractFlag = Field(alias="katarak")
    guarantee: Guarantee = Field(alias="jaminan")
    visit_purpose: str = Field("0", alias="tujuanKunj")
    procedure_flag: str = Field("", alias="flagProcedure")
    support_code: str = Field("", alias="kdPenunjang")
    service_assessment: str = Field("", alias="assesmentPel")
    control_letter: ControlLetter = Field(default_factory=ControlLetter, alias="skdp")
    attending_physician: str = Field("", alias="dpjpLayan")
    phone: str = Field("", alias="noTelp")
    user: str

class SEPParticipant(GatewayModel):
    insurance: str | None = Field(None, alias="asuransi")
    class_entitlement: str = Field("", alias="hakKelas")
    participant_type: str = Field("", alias="jnsPeserta")
    sex: str = Field("", alias="kelamin")
    name: str = Field("", alias="nama")
    card_number: str = Field("", alias="noKartu")
    medical_record_number: str = Field("", alias="noMr")
    date_of_birth: str = Field("", alias="tglLahir")

class SEPResult(GatewayModel):
    sep_number: str = Field(alias="noSep")
    notes: str = Field("", alias="catatan")
    initial_diagnosis: str = Field("", alias="diagAwal")
    ward_class: str = Field("", alias="kelasRawat")
    polyclinic: str = Field("", alias="poli")
    executive: str = Field("", alias="poliEksekutif")
    sep_date: str = Field("", alias="tglSep")
    participant: SEPParticipant = Field(default_factory=SEPParticipant, alias="peserta")


# Reference data ------------------------------------------------------------

class ReferenceItem(GatewayModel):
    code: str = Field(alias="kode")
    name: str = Field(alias="nama")
