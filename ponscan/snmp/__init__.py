"""SNMP inventory: async subtree walks joined by OID index suffix.

Import ``ponscan.snmp.poller`` / ``ponscan.snmp.walker`` directly; this
package stays free of imports so the dialect tables can use its converters.
"""
