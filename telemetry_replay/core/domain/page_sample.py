"""HTTP page sample record.

A page sample is one flat telemetry row captured by a network sensor for a
single HTTP page load: addressing, byte/packet/TCP counters split by
direction, response-code tallies, timing breakdowns, throughput, geo and
user-agent metadata.

The model is intentionally flat. The wire shape (backend API and push
events) is one JSON object with camelCase keys; dataset headers use the
snake_case field names.
"""

# pylint: disable=too-many-lines
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


def to_wire_name(field_name: str) -> str:
    """Return the camelCase wire name for a snake_case field name.

    Digits stay attached to the segment they start, so ``res_code_1xx_cnt``
    maps to ``resCode1xxCnt`` and ``domestic_sub1_name_req`` to
    ``domesticSub1NameReq``.
    """
    head, *tail = field_name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


class PageSample(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_wire_name,
        populate_by_name=True,
        extra="ignore",
    )

    # Primary Key
    row_key: str | None = None

    # IP & Port
    src_ip: str | None = None
    dst_ip: str | None = None
    src_port: int | None = None
    dst_port: int | None = None

    # Timestamp
    ts_frame_arrival: float | None = None
    ts_frame_landoff: float | None = None
    page_idx: int | None = None
    ts_server: datetime | None = None
    ts_server_nsec: float | None = None

    # MAC Address
    src_mac: str | None = None
    dst_mac: str | None = None

    # HTTP Length
    page_http_len: int | None = None
    page_http_len_req: int | None = None
    page_http_len_res: int | None = None
    page_http_header_len_req: int | None = None
    page_http_header_len_res: int | None = None
    page_http_content_len_req: int | None = None
    page_http_content_len_res: int | None = None

    # Packet Length
    page_pkt_len: int | None = None
    page_pkt_len_req: int | None = None
    page_pkt_len_res: int | None = None

    # TCP Length
    page_tcp_len: int | None = None
    page_tcp_len_req: int | None = None
    page_tcp_len_res: int | None = None
    http_content_length: int | None = None
    http_content_length_req: int | None = None

    # Connection Error Session Length
    conn_err_session_len: int | None = None
    req_conn_err_session_len: int | None = None
    res_conn_err_session_len: int | None = None

    # Retransmission Length
    retransmission_len: int | None = None
    retransmission_len_req: int | None = None
    retransmission_len_res: int | None = None

    # Out of Order Length
    out_of_order_len: int | None = None
    out_of_order_len_req: int | None = None
    out_of_order_len_res: int | None = None

    # Lost Segment Length
    lost_seg_len: int | None = None
    lost_seg_len_req: int | None = None
    lost_seg_len_res: int | None = None

    # ACK Lost Length
    ack_lost_len: int | None = None
    ack_lost_len_req: int | None = None
    ack_lost_len_res: int | None = None

    # Window Update Length
    win_update_len: int | None = None
    win_update_len_req: int | None = None
    win_update_len_res: int | None = None

    # Duplicate ACK Length
    dup_ack_len: int | None = None
    dup_ack_len_req: int | None = None
    dup_ack_len_res: int | None = None

    # Zero Window Length
    zero_win_len: int | None = None
    zero_win_len_req: int | None = None
    zero_win_len_res: int | None = None

    # Checksum Error Length
    checksum_error_len: int | None = None
    checksum_error_len_req: int | None = None
    checksum_error_len_res: int | None = None

    # RTT Count
    page_rtt_conn_cnt_req: int | None = None
    page_rtt_conn_cnt_res: int | None = None
    page_rtt_ack_cnt_req: int | None = None
    page_rtt_ack_cnt_res: int | None = None

    # Request Making Count
    page_req_making_cnt: int | None = None

    # HTTP Count
    page_http_cnt: int | None = None
    page_http_cnt_req: int | None = None
    page_http_cnt_res: int | None = None

    # Packet Count
    page_pkt_cnt: int | None = None
    page_pkt_cnt_req: int | None = None
    page_pkt_cnt_res: int | None = None

    # Session & Connection Count
    page_session_cnt: int | None = None
    page_tcp_connect_cnt: int | None = None

    # Connection Error Count
    conn_err_pkt_cnt: int | None = None
    conn_err_session_cnt: int | None = None

    # Retransmission Count
    retransmission_cnt: int | None = None
    retransmission_cnt_req: int | None = None
    retransmission_cnt_res: int | None = None

    # Out of Order Count
    out_of_order_cnt: int | None = None
    out_of_order_cnt_req: int | None = None
    out_of_order_cnt_res: int | None = None

    # Lost Segment Count
    lost_seg_cnt: int | None = None
    lost_seg_cnt_req: int | None = None
    lost_seg_cnt_res: int | None = None

    # ACK Lost Count
    ack_lost_cnt: int | None = None
    ack_lost_cnt_req: int | None = None
    ack_lost_cnt_res: int | None = None

    # Window Update Count
    win_update_cnt: int | None = None
    win_update_cnt_req: int | None = None
    win_update_cnt_res: int | None = None

    # Duplicate ACK Count
    dup_ack_cnt: int | None = None
    dup_ack_cnt_req: int | None = None
    dup_ack_cnt_res: int | None = None

    # Zero Window Count
    zero_win_cnt: int | None = None
    zero_win_cnt_req: int | None = None
    zero_win_cnt_res: int | None = None

    # Window Full Count
    window_full_cnt: int | None = None
    window_full_cnt_req: int | None = None
    window_full_cnt_res: int | None = None

    # TCP Count
    page_tcp_cnt: int | None = None
    page_tcp_cnt_req: int | None = None
    page_tcp_cnt_res: int | None = None

    # Request Method Count
    req_method_get_cnt: int | None = None
    req_method_put_cnt: int | None = None
    req_method_head_cnt: int | None = None
    req_method_post_cnt: int | None = None
    req_method_trace_cnt: int | None = None
    req_method_delete_cnt: int | None = None
    req_method_options_cnt: int | None = None
    req_method_patch_cnt: int | None = None
    req_method_connect_cnt: int | None = None
    req_method_oth_cnt: int | None = None

    # Request Method Error Count
    req_method_get_cnt_error: int | None = None
    req_method_put_cnt_error: int | None = None
    req_method_head_cnt_error: int | None = None
    req_method_post_cnt_error: int | None = None
    req_method_trace_cnt_error: int | None = None
    req_method_delete_cnt_error: int | None = None
    req_method_options_cnt_error: int | None = None
    req_method_patch_cnt_error: int | None = None
    req_method_connect_cnt_error: int | None = None
    req_method_oth_cnt_error: int | None = None

    # Response Code Count
    res_code_1xx_cnt: int | None = None
    res_code_2xx_cnt: int | None = None
    res_code_304_cnt: int | None = None
    res_code_3xx_cnt: int | None = None
    res_code_401_cnt: int | None = None
    res_code_403_cnt: int | None = None
    res_code_404_cnt: int | None = None
    res_code_4xx_cnt: int | None = None
    res_code_5xx_cnt: int | None = None
    res_code_oth_cnt: int | None = None

    # Transaction Count
    stopped_transaction_cnt: int | None = None
    stopped_transaction_cnt_req: int | None = None
    stopped_transaction_cnt_res: int | None = None

    # Incomplete Count
    incomplete_cnt: int | None = None
    incomplete_cnt_req: int | None = None
    incomplete_cnt_res: int | None = None

    # Timeout Count
    timeout_cnt: int | None = None
    timeout_cnt_req: int | None = None
    timeout_cnt_res: int | None = None

    # RTO Count
    ts_page_rto_cnt_req: int | None = None
    ts_page_rto_cnt_res: int | None = None

    # TCP Error
    tcp_error_cnt: int | None = None
    tcp_error_cnt_req: int | None = None
    tcp_error_cnt_res: int | None = None
    tcp_error_len: int | None = None
    tcp_error_len_req: int | None = None
    tcp_error_len_res: int | None = None

    # Page Error
    page_error_cnt: int | None = None

    # URI Count
    uri_cnt: int | None = None
    http_uri_cnt: int | None = None
    https_uri_cnt: int | None = None

    # Content Type Count
    content_type_html_cnt_req: int | None = None
    content_type_html_cnt_res: int | None = None
    content_type_css_cnt_req: int | None = None
    content_type_css_cnt_res: int | None = None
    content_type_js_cnt_req: int | None = None
    content_type_js_cnt_res: int | None = None
    content_type_img_cnt_req: int | None = None
    content_type_img_cnt_res: int | None = None
    content_type_oth_cnt_req: int | None = None
    content_type_oth_cnt_res: int | None = None

    # HTTP Response Code
    http_res_code: str | None = None
    is_https: int | None = None

    # Timing Information (Double for milliseconds precision)
    ts_first: float | None = None
    ts_page_begin: float | None = None
    ts_page_end: float | None = None
    ts_page_req_syn: float | None = None
    ts_page: float | None = None
    ts_page_gap: float | None = None
    ts_page_res_init: float | None = None
    ts_page_res_init_gap: float | None = None
    ts_page_res_app: float | None = None
    ts_page_res_app_gap: float | None = None
    ts_page_res: float | None = None
    ts_page_res_gap: float | None = None
    ts_page_transfer_req: float | None = None
    ts_page_transfer_req_gap: float | None = None
    ts_page_transfer_res: float | None = None
    ts_page_transfer_res_gap: float | None = None
    ts_page_req_making_sum: float | None = None
    ts_page_req_making_avg: float | None = None
    ts_page_tcp_connect_sum: float | None = None
    ts_page_tcp_connect_min: float | None = None
    ts_page_tcp_connect_max: float | None = None
    ts_page_tcp_connect_avg: float | None = None

    # Network Speed (Mbps/pps)
    mbps: float | None = None
    mbps_req: float | None = None
    mbps_res: float | None = None
    pps: float | None = None
    pps_req: float | None = None
    pps_res: float | None = None
    mbps_min: float | None = None
    mbps_min_req: float | None = None
    mbps_min_res: float | None = None
    pps_min: float | None = None
    pps_min_req: float | None = None
    pps_min_res: float | None = None
    mbps_max: float | None = None
    mbps_max_req: float | None = None
    mbps_max_res: float | None = None
    pps_max: float | None = None
    pps_max_req: float | None = None
    pps_max_res: float | None = None

    # Error Percentage
    tcp_error_percentage: float | None = None
    tcp_error_percentage_req: float | None = None
    tcp_error_percentage_res: float | None = None
    page_error_percentage: float | None = None

    # Location Information
    country_name_req: str | None = None
    country_name_res: str | None = None
    continent_name_req: str | None = None
    continent_name_res: str | None = None
    domestic_primary_name_req: str | None = None
    domestic_primary_name_res: str | None = None
    domestic_sub1_name_req: str | None = None
    domestic_sub1_name_res: str | None = None
    domestic_sub2_name_req: str | None = None
    domestic_sub2_name_res: str | None = None

    # Protocol Information
    ndpi_protocol_app: str | None = None
    ndpi_protocol_master: str | None = None
    sensor_device_name: str | None = None

    # HTTP Information
    http_method: str | None = None
    http_version: str | None = None
    http_version_req: str | None = None
    http_version_res: str | None = None
    http_res_phrase: str | None = None
    http_content_type: str | None = None
    http_user_agent: str | None = None
    http_cookie: str | None = None
    http_location: str | None = None
    http_host: str | None = None
    http_uri: str | None = None
    http_uri_split: str | None = None
    http_referer: str | None = None

    # User Agent Information
    user_agent_software_name: str | None = None
    user_agent_operating_system_name: str | None = None
    user_agent_operating_platform: str | None = None
    user_agent_software_type: str | None = None
    user_agent_hardware_type: str | None = None
    user_agent_layout_engine_name: str | None = None

    # Metadata
    created_at: datetime | None = None

    def refreshed(self, *, row_key: str, now: datetime) -> PageSample:
        """Return a copy carrying a new unique key and emission timestamps."""
        return self.model_copy(
            update={
                "row_key": row_key,
                "ts_server": now,
                "created_at": now,
            }
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-compatible camelCase payload."""
        return self.model_dump(mode="json", by_alias=True)
