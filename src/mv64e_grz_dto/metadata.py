"""
GRZ submission metadata records.

Every record is immutable and strict: unknown keys, missing required keys, wrong JSON types
and enum values outside their closed set are all rejected while decoding.

Dates are calendar dates in the ISO 8601 extended format YYYY-MM-DD; the basic format YYYYMMDD is
rejected. Integers such as the read length must fit into a signed 64-bit integer.
"""

from collections.abc import Iterator
from datetime import date
from enum import StrEnum
from typing import Annotated

from pydantic import Field, JsonValue, StringConstraints

from .common import CamelCaseModel, StrictBaseModel

TanG = Annotated[str, StringConstraints(pattern=r"^[a-fA-F0-9]{64}$")]
"""A 32-byte token as 64 hexadecimal digits, either case."""

Int64 = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]


class SubmissionType(StrEnum):
    """
    The options are: 'initial' for first submission, 'followup' is for followup submissions,
    'addition' for additional submission, 'correction' for correction, 'test' for test submissions
    """

    initial = "initial"
    followup = "followup"
    addition = "addition"
    correction = "correction"
    test = "test"


class GenomicStudyType(StrEnum):
    """
    whether additional persons are tested as well
    """

    single = "single"
    duo = "duo"
    trio = "trio"


class GenomicStudySubtype(StrEnum):
    """
    whether tumor and/or germ-line are tested
    """

    tumor_only = "tumor-only"
    tumor_germline = "tumor+germline"
    germline_only = "germline-only"


class CoverageType(StrEnum):
    """
    Health insurance providers
    """

    GKV = "GKV"
    """gesetzliche Krankenversicherung"""
    PKV = "PKV"
    """private Krankenversicherung"""
    BG = "BG"
    """Berufsgenossenschaft"""
    SEL = "SEL"
    """Selbstzahler"""
    SOZ = "SOZ"
    """Sozialamt"""
    GPV = "GPV"
    """gesetzliche Pflegeversicherung"""
    PPV = "PPV"
    """private Pflegeversicherung"""
    BEI = "BEI"
    """Beihilfe"""
    SKT = "SKT"
    """Sonstige Kostenträger"""
    UNK = "UNK"
    """Unbekannt"""


class DiseaseType(StrEnum):
    """
    Type of the disease
    """

    oncological = "oncological"
    rare = "rare"
    hereditary = "hereditary"


class Submission(CamelCaseModel):
    submission_date: date
    """
    Date of submission in ISO 8601 format YYYY-MM-DD
    """

    submission_type: SubmissionType

    tan_g: TanG
    """
    The VNg of the genomic data of the index patient that will be reimbursed --> a unique 32-length byte code
    represented in a hex string of length 64.
    """

    local_case_id: str
    """
    A local case identifier of the Leistungserbringer to be able to track multiple submissions
    referring to the same index patient
    """

    coverage_type: CoverageType

    submitter_id: str
    """
    Institutional ID of the submitter according to §293 SGB V.
    """

    genomic_data_center_id: str
    """
    ID of the genomic data center in the format GRZXXXnnn.
    """

    clinical_data_node_id: str
    """
    ID of the clinical data node in the format KDKXXXnnn.
    """

    disease_type: DiseaseType

    genomic_study_type: GenomicStudyType

    genomic_study_subtype: GenomicStudySubtype

    lab_name: str
    """
    Name of the sequencing lab.
    """


class Gender(StrEnum):
    """
    Gender of the donor.
    """

    male = "male"
    female = "female"
    other = "other"
    unknown = "unknown"


class Relation(StrEnum):
    """
    Relationship of the donor in respect to the index patient, e.g. 'index', 'brother', 'mother', etc.
    """

    mother = "mother"
    father = "father"
    brother = "brother"
    sister = "sister"
    child = "child"
    index_ = "index"
    other = "other"


class ScopeType(StrEnum):
    """
    Consent or refusal to participate and consent, must be indicated for each option listed in the scope of consent.
    """

    permit = "permit"
    deny = "deny"


class ScopeDomain(StrEnum):
    """
    Scope of consent or revocation.
    """

    mv_sequencing = "mvSequencing"
    re_identification = "reIdentification"
    case_identification = "caseIdentification"


class Scope(StrictBaseModel):
    """
    The scope of the Modellvorhaben consent given by the donor.
    """

    type_: Annotated[ScopeType, Field(alias="type")]

    date: date
    """
    Date of signature of the pilot projects consent; in ISO 8601 format YYYY-MM-DD.
    """

    domain: ScopeDomain


class MvConsent(CamelCaseModel):
    presentation_date: date | None = None
    """
    Date of delivery. Date (in ISO 8601 format YYYY-MM-DD) on which the Model Project Declaration of Participation
    was presented to the patient, unless identical to the date of signature
    """

    version: str
    """
    Version of the declaration of participation.
    Name and version of the declaration of participation in the MV GenomSeq, e.g.:
    'Patient Info TE Consent MVGenomSeq vers01'
    """

    scope: list[Scope]
    """
    Modules of the consent to MV: must have at least a permit of mvSequencing
    """


class ResearchConsentSchemaVersion(StrEnum):
    """
    Schema version of de.medizininformatikinitiative.kerndatensatz.consent
    """

    v_2025_0_1 = "2025.0.1"


class NoScopeJustification(StrEnum):
    """
    Justification if no scope object is present.
    """

    technical_reason = "consent information cannot be submitted by LE due to technical reason"
    organizational_issues = "consent is not implemented at LE due to organizational issues"
    other_patient_related_reason = "other patient-related reason"
    patient_did_not_return_consent_documents = "patient did not return consent documents"
    patient_refuses_to_sign_consent = "patient refuses to sign consent"
    patient_unable_to_consent = "patient unable to consent"


class ResearchConsent(CamelCaseModel):
    """
    Research consents. Multiple declarations of consent are possible! Must be assigned to the respective data sets.
    """

    schema_version: ResearchConsentSchemaVersion | None = None

    presentation_date: date
    """
    Date of the delivery of the research consent in ISO 8601 format (YYYY-MM-DD)
    """

    scope: dict[str, JsonValue] | None = None
    """
    Scope of the research consent in JSON format following the MII IG Consent v2025 FHIR schema.
    See 'https://www.medizininformatik-initiative.de/Kerndatensatz/KDS_Consent_V2025/MII-IG-Modul-Consent.html' and
    'https://packages2.fhir.org/packages/de.medizininformatikinitiative.kerndatensatz.consent'.
    """

    no_scope_justification: NoScopeJustification | None = None


class TissueOntology(StrictBaseModel):
    name: str
    """
    Name of the tissue ontology
    """

    version: str
    """
    Version of the tissue ontology
    """


class SampleConservation(StrEnum):
    """
    Sample conservation
    """

    fresh_tissue = "fresh-tissue"
    cryo_frozen = "cryo-frozen"
    ffpe = "ffpe"
    other = "other"
    unknown = "unknown"


class SequenceType(StrEnum):
    """
    Type of sequence (DNA or RNA)
    """

    dna = "dna"
    rna = "rna"


class SequenceSubtype(StrEnum):
    """
    Subtype of sequence (germline, somatic, etc.)
    """

    germline = "germline"
    somatic = "somatic"
    other = "other"
    unknown = "unknown"


class FragmentationMethod(StrEnum):
    """
    Fragmentation method
    """

    sonication = "sonication"
    enzymatic = "enzymatic"
    none = "none"
    other = "other"
    unknown = "unknown"


class LibraryType(StrEnum):
    """
    Library type
    """

    panel = "panel"
    panel_lr = "panel_lr"
    wes = "wes"
    wes_lr = "wes_lr"
    wgs = "wgs"
    wgs_lr = "wgs_lr"
    wxs = "wxs"
    wxs_lr = "wxs_lr"
    other = "other"
    unknown = "unknown"


class EnrichmentKitManufacturer(StrEnum):
    """
    Manufacturer of the enrichment kit
    """

    illumina = "Illumina"
    agilent = "Agilent"
    twist = "Twist"
    neb = "NEB"
    other = "other"
    unknown = "unknown"
    none = "none"


class SequencingLayout(StrEnum):
    """
    The sequencing layout, aka the end type of sequencing.
    """

    single_end = "single-end"
    paired_end = "paired-end"
    reverse = "reverse"
    other = "other"


class TumorCellCountMethod(StrEnum):
    """
    Method used to determine cell count.
    """

    pathology = "pathology"
    bioinformatics = "bioinformatics"
    other = "other"
    unknown = "unknown"


class TumorCellCount(StrictBaseModel):
    """
    Tuple of tumor cell counts and how they were determined.
    """

    count: float
    """
    Tumor cell count in %
    """

    method: TumorCellCountMethod


class CallerUsed(StrictBaseModel):
    name: str
    """
    Name of the caller used
    """

    version: str
    """
    Version of the caller used
    """


class FileType(StrEnum):
    """
    Type of the file; if BED file is submitted, only 1 file is allowed.
    """

    bam = "bam"
    vcf = "vcf"
    bed = "bed"
    fastq = "fastq"


class ChecksumType(StrEnum):
    """
    Type of checksum algorithm used
    """

    sha256 = "sha256"


class ReadOrder(StrEnum):
    """
    Indicates the read order for paired-end reads.
    """

    r1 = "R1"
    r2 = "R2"


class File(CamelCaseModel):
    file_path: str
    """
    Path relative to the submission files directory, e.g.:
    'patient_001/patient_001_dna.fastq.gz' if the file is located in
    <submission root>/files/patient_001/patient_001_dna.fastq.gz
    """

    file_type: FileType

    read_length: Int64 | None = None
    """
    The read length; in the case of long-read sequencing it is the rounded average read length.
    """

    checksum_type: ChecksumType | None = None

    file_checksum: str
    """
    checksum of the file
    """

    file_size_in_bytes: float
    """
    Size of the file in bytes
    """

    read_order: ReadOrder | None = None

    flowcell_id: str | None = None
    """
    Indicates the flow cell.
    """

    lane_id: str | None = None
    """
    Indicates the lane
    """


class PercentBasesAboveQualityThreshold(CamelCaseModel):
    """Percentage of bases with a specified minimum quality threshold"""

    minimum_quality: float
    """The minimum quality score threshold"""

    percent: float
    """
    Percentage of bases that meet or exceed the minimum quality score, according to
    https://www.bfarm.de/SharedDocs/Downloads/DE/Forschung/modellvorhaben-genomsequenzierung/Qs-durch-GRZ.pdf?__blob=publicationFile
    """


class ReferenceGenome(StrEnum):
    """
    Reference genome used according to the Genome Reference Consortium (https://www.ncbi.nlm.nih.gov/grc)
    """

    GRCh37 = "GRCh37"
    GRCh38 = "GRCh38"


class SequenceData(CamelCaseModel):
    """
    Sequence data generated from the wet lab experiment.
    """

    bioinformatics_pipeline_name: str
    """
    Name of the bioinformatics pipeline used
    """

    bioinformatics_pipeline_version: str
    """
    Version or commit hash of the bioinformatics pipeline
    """

    reference_genome: ReferenceGenome

    percent_bases_above_quality_threshold: PercentBasesAboveQualityThreshold

    mean_depth_of_coverage: float
    """
    Mean depth of coverage
    """

    min_coverage: float
    """
    Minimum coverage
    """

    targeted_regions_above_min_coverage: float
    """
    Fraction of targeted regions that are above minimum coverage
    """

    non_coding_variants: bool
    """
    The analysis includes non-coding variants -> true or false
    """

    caller_used: list[CallerUsed]
    """
    Caller that is used in the pipeline
    """

    files: list[File]
    """
    List of files generated and required in this analysis.
    """

    def contains_files(self, file_type: FileType) -> bool:
        return any(f.file_type == file_type for f in self.files)

    def list_files(self, file_type: FileType) -> list[File]:
        return [f for f in self.files if f.file_type == file_type]


class LabDatum(CamelCaseModel):
    lab_data_name: str
    """
    Name/ID of the biospecimen e.g. 'Blut DNA normal'
    """

    tissue_ontology: TissueOntology

    tissue_type_id: str
    """
    Tissue ID according to the ontology in use.
    """

    tissue_type_name: str
    """
    Tissue name according to the ontology in use.
    """

    sample_date: date
    """
    Date of sample in ISO 8601 format YYYY-MM-DD
    """

    sample_conservation: SampleConservation

    sequence_type: SequenceType

    sequence_subtype: SequenceSubtype

    fragmentation_method: FragmentationMethod

    library_type: LibraryType

    library_prep_kit: str
    """
    Name/version of the library prepkit
    """

    library_prep_kit_manufacturer: str
    """
    Library prep kit manufacturer
    """

    sequencer_model: str
    """
    Name/version of the sequencer model
    """

    sequencer_manufacturer: str
    """
    Sequencer manufacturer
    """

    kit_name: str
    """
    Name/version of the sequencing kit
    """

    kit_manufacturer: str
    """
    Sequencing kit manufacturer
    """

    enrichment_kit_manufacturer: EnrichmentKitManufacturer

    enrichment_kit_description: str
    """
    Name/version of the enrichment kit
    """

    barcode: str
    """
    The barcode used or 'na'
    """

    sequencing_layout: SequencingLayout

    tumor_cell_count: list[TumorCellCount] | None = None

    sequence_data: SequenceData | None = None
    """
    Present only if bioinformatics results exist for this lab datum.
    """

    def has_sequence_data(self) -> bool:
        return self.sequence_data is not None


class Donor(CamelCaseModel):
    donor_pseudonym: str
    """
    A unique identifier given by the Leistungserbringer for each donor of a single, duo or trio sequencing;
    the donorPseudonym needs to be identifiable by the Leistungserbringer
    in case of changes to the consents by one of the donors.
    For Index patient use index.
    """

    gender: Gender

    relation: Relation

    mv_consent: MvConsent

    research_consents: list[ResearchConsent]
    """
    Research consents. Multiple declarations of consent are possible! Must be assigned to the respective data sets.
    """

    lab_data: list[LabDatum]
    """
    Lab data related to the donor.
    """

    def is_index(self) -> bool:
        return self.relation == Relation.index_


class Metadata(StrictBaseModel):
    """
    General metadata schema for submissions to the GRZ
    """

    donors: list[Donor]
    """
    List of donors including the index patient.
    """

    submission: Submission

    def index_donor(self) -> Donor | None:
        """The first donor related to the index patient as 'index', if any."""
        return next((donor for donor in self.donors if donor.is_index()), None)

    def iter_files(self) -> Iterator[tuple[Donor, LabDatum, File]]:
        """
        Iterate over all files listed in the metadata, in document order.

        Lab data without sequence data do not list any files and are skipped.
        """
        for donor in self.donors:
            for lab_datum in donor.lab_data:
                if lab_datum.sequence_data is None:
                    continue
                for file in lab_datum.sequence_data.files:
                    yield donor, lab_datum, file
