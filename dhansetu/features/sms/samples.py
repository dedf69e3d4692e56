"""Known-good alert formats used by the /samples endpoint and the tests."""
from typing import List, TypedDict


class SmsSample(TypedDict):
    name: str
    sms: str
    sender: str


TEST_SMS_SAMPLES: List[SmsSample] = [
    {
        "name": "HDFC Bank Debit",
        "sms": "Rs.500.00 debited from A/c XX1234 on 24-Nov-24. Avl Bal: Rs.10000.00",
        "sender": "HDFCBK",
    },
    {
        "name": "SBI Credit",
        "sms": "INR 2000 credited to a/c xx5678 on 24-11-2024",
        "sender": "SBIINB",
    },
    {
        "name": "ICICI Credit Card",
        "sms": "Rs 1500 spent on ICICI Card XX9012 at Amazon on 24-Nov-24",
        "sender": "ICICIB",
    },
    {
        "name": "Google Pay UPI",
        "sms": "Rs.300 sent via Google Pay to John on 24-Nov-24",
        "sender": "GPAY",
    },
    {
        "name": "Edge Case - No Date",
        "sms": "Rs.750 debited from A/c XX3456",
        "sender": "HDFCBK",
    },
    {
        "name": "Axis Bank Debit",
        "sms": "Dear Customer, Rs.1200 has been debited from your account XX7890 on 24/11/2024. Available balance: Rs.25000",
        "sender": "AXISBK",
    },
    {
        "name": "PhonePe Payment",
        "sms": "Rs.450 paid to Swiggy via PhonePe UPI on 24-Nov-24",
        "sender": "PHONEPE",
    },
]
