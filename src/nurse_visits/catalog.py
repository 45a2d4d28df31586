"""Reference tables shared by the proxy, the normalizer and the views.

This is the one place that knows the class periods, the historical field
names used by the spreadsheet, the symptom grouping rules and the choices
offered on the booking form.
"""

from typing import NamedTuple

NOT_SPECIFIED = "ไม่ระบุ"
OTHER_SYMPTOM = "อื่นๆ"
NO_DATA = "ไม่มีข้อมูล"
NO_IMAGE = "No image provided"
NOT_AVAILABLE = "N/A"


class Period(NamedTuple):
    label: str  # "คาบ 1"
    value: str  # "08:30-09:30", the value stored in the spreadsheet


# Values written by the booking form; the history view filters on the same set.
PERIODS: tuple[Period, ...] = (
    Period("คาบ 0", "07:30-08:00"),
    Period("คาบ 1", "08:30-09:30"),
    Period("คาบ 2", "09:30-10:30"),
    Period("คาบ 3", "10:30-11:30"),
    Period("คาบ 4", "11:30-12:30"),
    Period("คาบ 5", "12:30-13:30"),
    Period("คาบ 6", "13:30-14:30"),
    Period("คาบ 7", "14:30-15:30"),
    Period("คาบ 8", "15:30-16:30"),
)

PERIOD_LABELS: dict[str, str] = {p.value: p.label for p in PERIODS}

# Logical field -> keys the script has used for it over time, most recent first.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date", "วันที่เลือก", "วันที่"),
    "time_slot": ("timeSlot", "period", "คาบที่เรียน", "คาบเรียนที่"),
    "student_id": ("studentId", "รหัสนักเรียน"),
    "grade": ("grade", "ชั้น"),
    "prefix": ("prefix", "คำนำหน้า"),
    "first_name": ("firstName", "ชื่อ"),
    "last_name": ("lastName", "นามสกุล"),
    "symptoms": ("symptoms", "symptome", "อาการ"),
    "treatment": ("treatment", "การรักษา"),
    "image_link": ("imageLink", "รูปภาพ"),
    "email": ("email", "อีเมล"),
}

# Placeholder used when none of a field's aliases is present.
FIELD_DEFAULTS: dict[str, str | None] = {
    "date": NOT_SPECIFIED,
    "time_slot": NOT_SPECIFIED,
    "symptoms": NOT_SPECIFIED,
    "student_id": "",
    "grade": "",
    "prefix": "",
    "first_name": "",
    "last_name": "",
    "treatment": "",
    "image_link": None,
    "email": "",
}

# Ordered keyword rules; the first rule with a matching keyword wins.
SYMPTOM_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("ปวด/เวียนศีรษะ", ("เวียนหัว", "ปวดหัว")),
    ("บาดเจ็บ/อุบัติเหตุ", ("บาดเจ็บ", "กีฬา")),
    ("ไข้/ไม่สบาย", ("ไข้",)),
    ("ไอ/เจ็บคอ", ("ไอ", "เจ็บคอ")),
    ("ปวดท้อง/ท้องเสีย", ("ท้องเสีย", "ปวดท้อง")),
    ("คลื่นไส้/อาเจียน", ("คลื่นไส้", "อาเจียน")),
    ("ปวดท้องประจำเดือน", ("ปวดท้องประจำเดือน",)),
    ("เป็นลม", ("เป็นลม",)),
    ("ท้องผูก", ("ท้องผูก",)),
    ("ปวดฟัน", ("ปวดฟัน",)),
    ("ปวดหู", ("ปวดหู",)),
    ("ปวดหลัง", ("ปวดหลัง",)),
    ("ปวดข้อ", ("ปวดข้อ",)),
    ("แผล/เลือดออก", ("แผล", "เลือดออก")),
    ("หายใจลำบาก", ("หายใจลำบาก",)),
    ("แพ้/ผื่นคัน", ("แพ้", "ผื่นคัน")),
    ("ปวดตา/สายตา", ("ปวดตา", "สายตา")),
    ("เครียด/วิตกกังวล", ("เครียด", "วิตกกังวล")),
)

# Order of the bars in the symptom chart.
SYMPTOM_CATEGORIES: tuple[str, ...] = (
    "ปวด/เวียนศีรษะ",
    "ไข้/ไม่สบาย",
    "ปวดท้อง/ท้องเสีย",
    "ปวดท้องประจำเดือน",
    "ไอ/เจ็บคอ",
    "บาดเจ็บ/อุบัติเหตุ",
    "เป็นลม",
    "คลื่นไส้/อาเจียน",
    "ท้องผูก",
    "ปวดฟัน",
    "ปวดหู",
    "ปวดหลัง",
    "ปวดข้อ",
    "แผล/เลือดออก",
    "หายใจลำบาก",
    "แพ้/ผื่นคัน",
    "ปวดตา/สายตา",
    "เครียด/วิตกกังวล",
    OTHER_SYMPTOM,
)

# Booking form choices
PREFIXES: tuple[str, ...] = ("เด็กชาย", "เด็กหญิง", "นาย", "นางสาว")
FORM_SYMPTOMS: tuple[str, ...] = ("ปวดหัว", "ไข้", "ปวดท้อง", "เจ็บคอ", "บาดเจ็บ", OTHER_SYMPTOM)
GRADE_OPTIONS: tuple[str, ...] = tuple(
    f"{level}/{room}" for level in range(1, 7) for room in range(1, 13)
)

# Multipart submission contract with the proxy
REQUIRED_FIELDS: tuple[str, ...] = (
    "date",
    "period",
    "studentId",
    "grade",
    "prefix",
    "firstName",
    "lastName",
    "symptoms",
    "treatment",
)
OPTIONAL_FIELDS: tuple[str, ...] = ("email", "notes")
ALLOWED_IMAGE_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png"})

# Inline messages shown by the views
MESSAGES: dict[str, str] = {
    "fetch_failed": "ไม่สามารถดึงข้อมูลได้",
    "fetch_timeout": "การเชื่อมต่อใช้เวลานานเกินไป กรุณาลองใหม่อีกครั้ง",
    "fetch_offline": "การเชื่อมต่อกับเครือข่ายหายไป กรุณาตรวจสอบการเชื่อมต่ออินเทอร์เน็ต",
    "fetch_exhausted": "ไม่สามารถเชื่อมต่อได้หลังจากลองหลายครั้ง กรุณารีเฟรชหน้าเว็บ",
    "form_incomplete": "กรุณากรอกข้อมูลให้ครบถ้วน",
    "date_out_of_range": "กรุณาเลือกวันที่ภายในปีการศึกษาปัจจุบัน",
    "student_id_digits": "รหัสนักเรียนต้องเป็นตัวเลขเท่านั้น",
    "period_invalid": "กรุณาเลือกคาบเรียนจากรายการ",
    "image_type": "กรุณาอัปโหลดไฟล์ภาพ (.jpg หรือ .png เท่านั้น)",
    "image_size": "ไฟล์ภาพต้องมีขนาดไม่เกิน 5MB",
    "image_unreadable": "ไม่สามารถโหลดตัวอย่างภาพได้",
    "lookup_required": "กรุณาค้นหาข้อมูลนักเรียนจากรหัสนักเรียนก่อนบันทึก",
    "lookup_not_found": "ไม่พบข้อมูลนักเรียน",
    "submit_failed": "ไม่สามารถบันทึกได้ กรุณาลองอีกครั้ง",
    "server_unreachable": "ไม่สามารถเชื่อมต่อเซิร์ฟเวอร์ได้",
    "no_history": "ไม่พบประวัติการจอง",
    "login_failed": "อีเมลหรือรหัสผ่านไม่ถูกต้อง",
}
