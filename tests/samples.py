"""Captured-style CLI transcripts used across the test modules."""

ZTE_SHOW_CARD = """
Rack Shelf Slot CfgType RealType Port  HardVer SoftVer         Status
-------------------------------------------------------------------------------
1    1     1    GTGOG   GTGOG    8     V1.0    V2.1.0          INSERVICE
1    1     2    GTGOG   GTGOG    8     V1.0    V2.1.0          INSERVICE
1    1     3    SCXN    SCXN     0     V2.0    V2.1.0          INSERVICE
"""

ZTE_SHOW_CARD_SHORT = """
Rack Shelf Slot CfgType  Status
--------------------------------
1    1     1    GTGOG    INSERVICE
1    1     4    PRWG     OFFLINE
"""

ZTE_ONU_STATE_1_3 = """
OnuIndex           SN             Admin State  OMCC State  Phase State  Channel
-----------------------------------------------------------------------------------
gpon-onu_1/1/3:1   ZTEGC0000001   enable       enable      working      1(GPON)
gpon-onu_1/1/3:2   ZTEGC0000002   enable       disable     LOS          1(GPON)
ONU Number: 2/2
"""

ZTE_ONU_STATE_PLAIN = """
OnuIndex   Admin State  OMCC State  Phase State  Channel
---------------------------------------------------------
1/1/1:1    enable       enable      working      1(GPON)
1/1/1:2    enable       enable      syncMib      1(GPON)
1/1/1:5    disable      disable     DyingGasp    1(GPON)
ONU Number: 3/3
"""

ZTE_EMPTY_PORT = "%Code 32310-GPONSRV : No related information to show."

ZTE_ONU_DETAIL = """
ONU interface:          gpon-onu_1/1/3:1
Name:                   cust-1001
Type:                   ZTE-F660
State:                  ready
Admin state:            enable
Phase state:            working
Config state:           success
Authentication mode:    sn
SN Bind:                enable with SN check
Serial number:          ZTEGC0000001
Password:
Description:            Rua A 123
Vport mode:             gemport
DBA Mode:               Hybrid
ONU Status:             enable
OMCI BW Profile:        -
Line Profile:           LP-100M
Service Profile:        SP-INTERNET
ONU Distance:           1234m
Online Duration:        5h 12m 3s
FEC:                    none
-------------------------------------------------------------
       Authpass Time          OfflineTime             Cause
   1   2024-01-10 08:00:00    2024-01-12 09:30:00     LOS
   2   2024-01-12 09:35:00    0000-00-00 00:00:00
"""

ZTE_UNCFG = """
OnuIndex                 Sn                  State
---------------------------------------------------------------------
gpon-onu_1/2/1:1         ZTEGC0A0B0C0        unknown
gpon-onu_1/2/4:1         HWTC1234ABCD        unknown
"""

# older firmware prints the state word and MAC without labels
HIOSO_ONU_BARE = """
ONU 2 offline
0011.2233.4488
"""

HIOSO_ONU_DETAIL = """
ONU name     : casa-7
Model        : HA7302CST
Status       : online
MAC address  : 00:11:22:33:44:77
Rx Power     : -21.3 dBm
Tx Power     : 2.1 dBm
Distance     : 850
"""
