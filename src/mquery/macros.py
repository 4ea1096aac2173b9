"""Macro registry — mdoc macro names, roff requests and macro-set detection."""

from __future__ import annotations

from enum import Enum, auto


class Macro(Enum):
    """Semantic macro attached to a node. Values are the names mandoc prints."""

    NONE = ""
    UNKNOWN = "?"

    # Prologue
    DD = "Dd"
    DT = "Dt"
    OS = "Os"

    # Sections and paragraphs
    SH = "Sh"
    SS = "Ss"
    PP = "Pp"
    LP = "Lp"

    # Displays and lists
    D1 = "D1"
    DL = "Dl"
    BD = "Bd"
    ED = "Ed"
    BL = "Bl"
    EL = "El"
    IT = "It"
    TA = "Ta"

    # Semantic inline
    AD = "Ad"
    AN = "An"
    AP = "Ap"
    AR = "Ar"
    CD = "Cd"
    CM = "Cm"
    DV = "Dv"
    ER = "Er"
    EV = "Ev"
    EX = "Ex"
    FA = "Fa"
    FD = "Fd"
    FL = "Fl"
    FN = "Fn"
    FT = "Ft"
    IC = "Ic"
    IN = "In"
    LI = "Li"
    ND = "Nd"
    NM = "Nm"
    OP = "Op"
    OT = "Ot"
    PA = "Pa"
    RV = "Rv"
    ST = "St"
    VA = "Va"
    VT = "Vt"
    XR = "Xr"
    LK = "Lk"
    MT = "Mt"
    LB = "Lb"
    TN = "Tn"
    MS = "Ms"
    EM = "Em"
    SY = "Sy"
    SX = "Sx"
    TG = "Tg"

    # Bibliographic references
    RS = "Rs"
    RE = "Re"
    REF_A = "%A"
    REF_B = "%B"
    REF_C = "%C"
    REF_D = "%D"
    REF_I = "%I"
    REF_J = "%J"
    REF_N = "%N"
    REF_O = "%O"
    REF_P = "%P"
    REF_Q = "%Q"
    REF_R = "%R"
    REF_T = "%T"
    REF_U = "%U"
    REF_V = "%V"

    # Enclosures and quoting
    AC = "Ac"
    AO = "Ao"
    AQ = "Aq"
    BC = "Bc"
    BO = "Bo"
    BQ = "Bq"
    BRC = "Brc"
    BRO = "Bro"
    BRQ = "Brq"
    DC = "Dc"
    DO = "Do"
    DQ = "Dq"
    EC = "Ec"
    EO = "Eo"
    ES = "Es"
    EN = "En"
    OC = "Oc"
    OO = "Oo"
    PC = "Pc"
    PO = "Po"
    PQ = "Pq"
    QC = "Qc"
    QL = "Ql"
    QO = "Qo"
    QQ = "Qq"
    SC = "Sc"
    SO = "So"
    SQ = "Sq"

    # Physical markup and spacing
    BF = "Bf"
    EF = "Ef"
    BK = "Bk"
    EK = "Ek"
    NO = "No"
    NS = "Ns"
    PF = "Pf"
    SM = "Sm"
    XC = "Xc"
    XO = "Xo"
    FO = "Fo"
    FC = "Fc"

    # Operating systems and misc
    AT = "At"
    BSX = "Bsx"
    BX = "Bx"
    DX = "Dx"
    FX = "Fx"
    NX = "Nx"
    OX = "Ox"
    UX = "Ux"
    BT = "Bt"
    DB = "Db"
    FR = "Fr"
    HF = "Hf"
    UD = "Ud"

    # roff requests that survive into mdoc trees
    BR = "br"
    CE = "ce"
    FI = "fi"
    FT_REQ = "ft"
    LL = "ll"
    MC = "mc"
    NF = "nf"
    PO_REQ = "po"
    RJ = "rj"
    SP = "sp"
    TA_REQ = "ta"
    TI = "ti"
    EQ = "EQ"


class MacroSet(Enum):
    """Macro language a parsed document was written in."""

    MDOC = auto()
    MAN = auto()
    UNKNOWN = auto()


_BY_NAME: dict[str, Macro] = {m.value: m for m in Macro if m not in (Macro.NONE, Macro.UNKNOWN)}

# roff requests are shared by both macro languages and say nothing about the set
_ROFF_REQUESTS: frozenset[Macro] = frozenset(
    {
        Macro.BR,
        Macro.CE,
        Macro.FI,
        Macro.FT_REQ,
        Macro.LL,
        Macro.MC,
        Macro.NF,
        Macro.PO_REQ,
        Macro.RJ,
        Macro.SP,
        Macro.TA_REQ,
        Macro.TI,
        Macro.EQ,
    }
)

MAN_MACROS: frozenset[str] = frozenset(
    (
        "TH SH SS TP TQ LP PP P IP HP SM SB BI IB BR RB R B I IR RI RE RS "
        "DT UC PD AT OP EX EE UR UE MT ME SY YS MR"
    ).split()
)


def resolve_macro(name: str) -> Macro:
    """Map a macro name as printed by mandoc to its Macro member."""
    return _BY_NAME.get(name, Macro.UNKNOWN)


def classify(name: str) -> MacroSet:
    """Return the macro language *name* belongs to, if it identifies one."""
    if name in MAN_MACROS:
        return MacroSet.MAN
    macro = _BY_NAME.get(name)
    if macro is not None and macro not in _ROFF_REQUESTS:
        return MacroSet.MDOC
    return MacroSet.UNKNOWN
