MESSAGES = {
    "en": {
        "error_no_pdf_selected": "Select a PDF before starting the quiz.",
        "error_restricted_location": "This file location is not allowed.",
        "error_only_pdf_supported": "Only PDF files are supported.",
        "error_not_valid_file": "The selected path is not a regular file.",
        "error_file_too_large": "The PDF is larger than 50 MB.",
        "error_file_empty": "The PDF is empty.",
        "error_invalid_pdf": "The file is not a valid PDF.",
        "error_file_validation_failed": "The file could not be read.",
        "error_cli_not_found": (
            "Gemini CLI was not found.\n\n"
            "Install it with:\n  npm install -g @google/gemini-cli\n\n"
            "then sign in from Settings."
        ),
        "error_cli_timeout": "The AI took too long to respond. Try again.",
        "error_cli_failed": "The AI tool failed. Try again.",
        "error_ai_response_malformed": "The AI returned an unreadable answer. Try again.",
        "error_ai_response_invalid": "The AI returned questions in an unexpected format.",
        "error_invalid_input": "Please enter a question.",
        "error_quiz_gen_failed": "Quiz generation failed.",
        "error_terminal_not_found": "Gemini CLI was not found, cannot open the login terminal.",
        "error_terminal_open_failed": "Could not open a terminal window.",
        "error_logout_failed": "Logout failed.",
    },
    "tr": {
        "error_no_pdf_selected": "Teste başlamadan önce bir PDF seçin.",
        "error_restricted_location": "Bu dosya konumuna izin verilmiyor.",
        "error_only_pdf_supported": "Yalnızca PDF dosyaları destekleniyor.",
        "error_not_valid_file": "Seçilen yol geçerli bir dosya değil.",
        "error_file_too_large": "PDF 50 MB sınırını aşıyor.",
        "error_file_empty": "PDF dosyası boş.",
        "error_invalid_pdf": "Dosya geçerli bir PDF değil.",
        "error_file_validation_failed": "Dosya okunamadı.",
        "error_cli_not_found": (
            "Gemini CLI bulunamadı.\n\n"
            "Kurmak için:\n  npm install -g @google/gemini-cli\n\n"
            "ardından Ayarlar'dan giriş yapın."
        ),
        "error_cli_timeout": "Yapay zeka çok uzun sürede yanıt verdi. Tekrar deneyin.",
        "error_cli_failed": "Yapay zeka aracı başarısız oldu. Tekrar deneyin.",
        "error_ai_response_malformed": "Yapay zeka okunamayan bir yanıt döndürdü.",
        "error_ai_response_invalid": "Yapay zeka soruları beklenmeyen bir biçimde döndürdü.",
        "error_invalid_input": "Lütfen bir soru yazın.",
        "error_quiz_gen_failed": "Test oluşturulamadı.",
        "error_terminal_not_found": "Gemini CLI bulunamadı, giriş terminali açılamıyor.",
        "error_terminal_open_failed": "Terminal penceresi açılamadı.",
        "error_logout_failed": "Çıkış yapılamadı.",
    },
}


def translate(code: str, language: str = "en") -> str:
    """Return the user-facing text for an error code; unknown codes pass through."""
    table = MESSAGES.get(language, MESSAGES["en"])
    if code in table:
        return table[code]
    return MESSAGES["en"].get(code, code)
